"""Tests for registry assembly and the HTTP endpoint."""

import threading

import httpx
import pytest
from prometheus_client import generate_latest

from orcus_exporter import __version__
from orcus_exporter.client.base import new_http_client
from orcus_exporter.config import BackendSettings, ExporterConfig
from orcus_exporter.errors import ConfigError, ProtocolError
from orcus_exporter.exporter import build_registry
from orcus_exporter.mock.fake_backends import make_server
from orcus_exporter.server import create_server

BASE = "http://backends.local"

STUB_STATUS = "Active connections: 2 \nserver accepts handled requests\n 10 10 20 \nReading: 0 Writing: 1 Waiting: 1 \n"

ROUTES = {
    "/nginx_status": STUB_STATUS,
    "/ping": "OK",
    "/metrics": {"TotalSyncCount": 12, "TotalSyncClusters": 30, "TotalSyncErrors": 1,
                 "LastSyncDurationSeconds": 0.5},
    "/api/status": {"Details": {"Healthy": True, "IsActiveNode": True, "AvailableNodes": [1, 2]}},
    "/api/problems": [],
    "/api/audit-failure-detection": [{"Id": 3}, {"Id": 1}, {"Id": 7}, {"Id": 2}],
    "/api/agents-failed-seeds": [],
}


def _config(base: str = BASE, **overrides) -> ExporterConfig:
    settings = dict(
        nginx=BackendSettings(uri=f"{base}/nginx_status"),
        oauth2_proxy=BackendSettings(uri=f"{base}/ping"),
        orcus=BackendSettings(uri=f"{base}/metrics"),
        orchestrator=BackendSettings(uri=f"{base}/api"),
        xtradb_cluster=BackendSettings(enabled=False),
    )
    settings.update(overrides)
    return ExporterConfig(**settings)


class _RecordingFactory:
    """http_client_factory that hands out MockTransport clients over a route table."""

    def __init__(self, make_http_client, routes):
        self._make = make_http_client
        self._routes = routes
        self.clients = []
        self.args = []

    def __call__(self, timeout, ssl_verify):
        self.args.append((timeout, ssl_verify))
        client = self._make(self._routes)
        self.clients.append(client)
        return client


def test_registry_exposes_every_enabled_backend(make_http_client):
    factory = _RecordingFactory(make_http_client, dict(ROUTES))
    built = build_registry(_config(), http_client_factory=factory)

    text = generate_latest(built.registry).decode()

    assert f'orcus_exporter_build_info{{version="{__version__}"}} 1.0' in text
    assert "nginx_up 1.0" in text
    assert "nginx_http_requests_total 20.0" in text
    assert "oauth2_proxy_up 1.0" in text
    assert "orcus_up 1.0" in text
    assert "orcus_sync_count_total 12.0" in text
    assert "orchestrator_up 1.0" in text
    assert "orchestrator_last_failover_id 7.0" in text
    assert "orchestrator_cluster_size 2.0" in text
    assert "xtradb_cluster" not in text

    # One client per HTTP backend, built with the configured timeout
    assert len(factory.clients) == 4
    assert factory.args[0] == (5.0, False)
    built.close()
    assert all(c.is_closed for c in factory.clients)


def test_disabled_backends_are_absent(make_http_client):
    factory = _RecordingFactory(make_http_client, dict(ROUTES))
    config = _config(
        nginx=BackendSettings(enabled=False),
        orchestrator=BackendSettings(enabled=False),
    )
    built = build_registry(config, http_client_factory=factory)
    text = generate_latest(built.registry).decode()

    assert "nginx_" not in text
    assert "orchestrator_" not in text
    assert "orcus_up 1.0" in text
    assert [c.namespace for c in built.collectors] == ["oauth2_proxy", "orcus"]
    built.close()


def test_backend_going_down_only_affects_its_own_up(make_http_client):
    routes = dict(ROUTES)
    built = build_registry(_config(), http_client_factory=_RecordingFactory(make_http_client, routes))

    routes["/api/audit-failure-detection"] = 500
    text = generate_latest(built.registry).decode()

    assert "orchestrator_up 0.0" in text
    assert "orchestrator_cluster_size" not in text
    assert "orchestrator_last_failover_id" not in text
    assert "orcus_up 1.0" in text
    assert "nginx_up 1.0" in text
    built.close()


def test_bootstrap_failure_retries_then_raises(make_http_client):
    routes = dict(ROUTES)
    routes["/metrics"] = 503
    factory = _RecordingFactory(make_http_client, routes)
    sleeps = []
    config = _config(retries=2, retry_interval=1.5)

    with pytest.raises(ProtocolError):
        build_registry(config, sleep=sleeps.append, http_client_factory=factory)

    assert sleeps == [1.5, 1.5]
    # nginx + oauth2_proxy once each, then three Orcus attempts
    assert len(factory.clients) == 5
    assert all(c.is_closed for c in factory.clients)


def test_malformed_uri_fails_bootstrap_without_retries(make_http_client):
    factory = _RecordingFactory(make_http_client, dict(ROUTES))
    sleeps = []
    config = _config(retries=3, oauth2_proxy=BackendSettings(uri="http://[::1"))

    with pytest.raises(ConfigError, match="invalid backend URI"):
        build_registry(config, sleep=sleeps.append, http_client_factory=factory)

    assert sleeps == []
    assert len(factory.clients) == 2
    assert all(c.is_closed for c in factory.clients)


def test_unexpected_bootstrap_error_still_closes_clients(make_http_client):
    routes = dict(ROUTES)
    routes["/api/status"] = RuntimeError("transport bug")
    factory = _RecordingFactory(make_http_client, routes)

    with pytest.raises(RuntimeError, match="transport bug"):
        build_registry(_config(retries=2), sleep=lambda _: None, http_client_factory=factory)

    # nginx, oauth2_proxy, orcus, then the one orchestrator attempt
    assert len(factory.clients) == 4
    assert all(c.is_closed for c in factory.clients)


def _serve_in_thread(server):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread


def test_against_fake_backend_server():
    backends = make_server(port=0)
    _serve_in_thread(backends)
    host, port = backends.server_address[:2]
    try:
        built = build_registry(_config(f"http://{host}:{port}"), http_client_factory=new_http_client)
        text = generate_latest(built.registry).decode()

        assert "orchestrator_last_failover_id 7.0" in text
        assert "orchestrator_cluster_size 3.0" in text
        assert "orchestrator_problems 1.0" in text
        assert "orchestrator_failed_seeds 0.0" in text
        assert "oauth2_proxy_up 1.0" in text
        assert "nginx_up 1.0" in text
        built.close()
    finally:
        backends.shutdown()
        backends.server_close()


def test_fake_backend_failing_path_marks_backend_down():
    backends = make_server(port=0, failing_paths={"/api/problems"})
    _serve_in_thread(backends)
    host, port = backends.server_address[:2]
    try:
        config = _config(f"http://{host}:{port}")
        with pytest.raises(ProtocolError, match="500"):
            build_registry(config, http_client_factory=new_http_client)
    finally:
        backends.shutdown()
        backends.server_close()


def test_http_endpoint_serves_metrics_and_root_page(make_http_client):
    built = build_registry(
        _config(nginx=BackendSettings(enabled=False)),
        http_client_factory=_RecordingFactory(make_http_client, dict(ROUTES)),
    )
    server = create_server("127.0.0.1:0", built.registry, "/metrics")
    _serve_in_thread(server)
    host, port = server.server_address[:2]
    try:
        with httpx.Client(base_url=f"http://{host}:{port}") as http:
            metrics = http.get("/metrics")
            assert metrics.status_code == 200
            assert metrics.headers["content-type"].startswith("text/plain")
            assert "orcus_up 1.0" in metrics.text

            root = http.get("/")
            assert root.status_code == 200
            assert "href='/metrics'" in root.text

            assert http.get("/missing").status_code == 404
    finally:
        server.shutdown()
        server.server_close()
        built.close()
