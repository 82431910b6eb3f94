"""Tests for the click entry point."""

import threading

from click.testing import CliRunner

from orcus_exporter import __version__
from orcus_exporter.main import cli
from orcus_exporter.mock.fake_backends import make_server


def _backend_args(base: str):
    return [
        "--no-xtradb-cluster",
        "--nginx-uri", f"{base}/nginx_status",
        "--oauth2-proxy-uri", f"{base}/ping",
        "--orcus-uri", f"{base}/metrics",
        "--orchestrator-uri", f"{base}/api",
    ]


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check_prints_current_samples():
    backends = make_server(port=0)
    threading.Thread(target=backends.serve_forever, daemon=True).start()
    host, port = backends.server_address[:2]
    try:
        result = CliRunner().invoke(cli, _backend_args(f"http://{host}:{port}") + ["check"])

        assert result.exit_code == 0, result.output
        assert "orcus_up" in result.output
        assert "orchestrator_last_failover_id" in result.output
    finally:
        backends.shutdown()
        backends.server_close()


def test_check_exits_non_zero_when_backend_unreachable():
    args = [
        "--no-xtradb-cluster", "--no-nginx", "--no-oauth2-proxy", "--no-orchestrator",
        "--orcus-uri", "http://127.0.0.1:1/metrics",
        "--timeout", "1",
        "check",
    ]
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 1


def test_options_from_environment():
    result = CliRunner().invoke(
        cli,
        ["check"],
        env={
            "ORCUS_EXPORTER_METRICS_PATH": "no-slash",
        },
        auto_envvar_prefix="ORCUS_EXPORTER",
    )
    assert result.exit_code == 2
    assert "metrics path" in result.output
