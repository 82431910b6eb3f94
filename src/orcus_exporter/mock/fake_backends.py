"""
Fake backend server for running the exporter without the real stack.

Serves all HTTP backends from one port:

    /nginx_status                     nginx stub_status
    /ping                             oauth2_proxy
    /metrics                          Orcus JSON metrics
    /api/status                       Orchestrator health
    /api/problems
    /api/audit-failure-detection
    /api/agents-failed-seeds

    python -m orcus_exporter.mock.fake_backends
    orcus-exporter --no-xtradb-cluster --nginx-uri http://127.0.0.1:9200/nginx_status ...
"""

from __future__ import annotations

import json
import random
from http.server import BaseHTTPRequestHandler, HTTPServer, ThreadingHTTPServer
from typing import Any, FrozenSet


_tick = 0
_rng = random.Random(42)
_requests = 0
_accepted = 0
_sync_count = 0


def _nginx_status() -> str:
    global _requests, _accepted
    active = _rng.randint(5, 300)
    _accepted += _rng.randint(1, 50)
    _requests += _rng.randint(1, 120)
    reading = _rng.randint(0, 10)
    writing = _rng.randint(1, max(1, active // 2))
    waiting = max(0, active - reading - writing)
    return (
        f"Active connections: {active} \n"
        "server accepts handled requests\n"
        f" {_accepted} {_accepted} {_requests} \n"
        f"Reading: {reading} Writing: {writing} Waiting: {waiting} \n"
    )


def _orcus_metrics() -> dict:
    global _tick, _sync_count
    _tick += 1
    _sync_count += 1
    return {
        "LastSyncDurationSeconds": round(_rng.uniform(0.5, 4.0), 3),
        "TotalSyncClusters": _sync_count * 3,
        "TotalSyncErrors": _sync_count // 10,
        "TotalSyncCount": _sync_count,
    }


ORCHESTRATOR_STATUS = {
    "Code": "OK",
    "Message": "Application node is healthy",
    "Details": {
        "Healthy": True,
        "Hostname": "orchestrator-1",
        "IsActiveNode": True,
        "AvailableNodes": [
            {"Hostname": "orchestrator-1"},
            {"Hostname": "orchestrator-2"},
            {"Hostname": "orchestrator-3"},
        ],
    },
}
ORCHESTRATOR_PROBLEMS = [
    {"Key": {"Hostname": "db-3", "Port": 3306}, "ReplicationLagSeconds": {"Int64": 120, "Valid": True}},
]
ORCHESTRATOR_FAILOVERS = [
    {"Id": 3, "AnalysisEntry": {"Analysis": "DeadMaster"}},
    {"Id": 1, "AnalysisEntry": {"Analysis": "UnreachableMaster"}},
    {"Id": 7, "AnalysisEntry": {"Analysis": "DeadMaster"}},
    {"Id": 2, "AnalysisEntry": {"Analysis": "DeadIntermediateMaster"}},
]
ORCHESTRATOR_FAILED_SEEDS: list = []


class _BackendsHandler(BaseHTTPRequestHandler):
    # Paths listed here answer 500, to simulate a broken backend
    failing_paths: FrozenSet[str] = frozenset()

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path in self.failing_paths:
            self._send(500, "text/plain", b"internal error\n")
            return

        if path == "/nginx_status":
            self._send(200, "text/plain", _nginx_status().encode())
        elif path == "/ping":
            self._send(200, "text/plain", b"OK")
        elif path == "/metrics":
            self._json(_orcus_metrics())
        elif path == "/api/status":
            self._json(ORCHESTRATOR_STATUS)
        elif path == "/api/problems":
            self._json(ORCHESTRATOR_PROBLEMS)
        elif path == "/api/audit-failure-detection":
            self._json(ORCHESTRATOR_FAILOVERS)
        elif path == "/api/agents-failed-seeds":
            self._json(ORCHESTRATOR_FAILED_SEEDS)
        else:
            self._send(404, "text/plain", b"not found\n")

    def _json(self, payload: Any):
        self._send(200, "application/json", json.dumps(payload).encode())

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def make_server(host: str = "127.0.0.1", port: int = 9200, failing_paths=()) -> HTTPServer:
    handler = _BackendsHandler
    if failing_paths:
        handler = type("_FailingBackendsHandler", (_BackendsHandler,),
                       {"failing_paths": frozenset(failing_paths)})
    return ThreadingHTTPServer((host, port), handler)


def run_fake_server(host: str = "127.0.0.1", port: int = 9200):
    server = make_server(host, port)
    print(f"Fake backends running at http://{host}:{port}/")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
