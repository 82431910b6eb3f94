"""
HTTP endpoint serving the merged exposition.

    GET /             small landing page
    GET <metrics>     every registered collector, collected on the spot

Requests are handled on their own threads, so scrapes of different
backends run side by side; each collector's lock serializes scrapes of
the same backend.
"""

from __future__ import annotations

import logging
import signal
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Type

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from orcus_exporter.config import parse_listen_address

log = logging.getLogger(__name__)

_ROOT_PAGE = """<html>
<head><title>Orcus Exporter</title></head>
<body>
<h1>Orcus Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def make_handler(registry: CollectorRegistry, metrics_path: str) -> Type[BaseHTTPRequestHandler]:
    """Request handler class bound to one registry."""

    class _ExporterHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            path = self.path.split("?", 1)[0]
            if path == metrics_path:
                self._send(200, CONTENT_TYPE_LATEST, generate_latest(registry))
            elif path == "/":
                page = _ROOT_PAGE.format(metrics_path=metrics_path).encode()
                self._send(200, "text/html; charset=utf-8", page)
            else:
                self._send(404, "text/plain; charset=utf-8", b"Not Found\n")

        def _send(self, status: int, content_type: str, body: bytes):
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            log.debug("%s - %s", self.address_string(), format % args)

    return _ExporterHandler


def create_server(listen_address: str, registry: CollectorRegistry, metrics_path: str) -> ThreadingHTTPServer:
    host, port = parse_listen_address(listen_address)
    server = ThreadingHTTPServer((host, port), make_handler(registry, metrics_path))
    server.daemon_threads = True
    return server


def _exit_on_sigterm(signum, frame):
    log.info("SIGTERM received. Exiting...")
    raise SystemExit(0)


def serve_forever(server: ThreadingHTTPServer) -> None:
    """Serve until SIGTERM or Ctrl+C, then close the listening socket."""
    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
