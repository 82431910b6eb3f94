"""Tests for the Orchestrator multi-endpoint client."""

import httpx
import pytest

from orcus_exporter.client.orchestrator import OrchestratorClient, last_failover_id, parse_status
from orcus_exporter.errors import ConnectError, DecodeError, ProtocolError

API_URI = "http://orchestrator.local:3000/api"


def _routes(**overrides) -> dict:
    routes = {
        "/api/status": {
            "Code": "OK",
            "Details": {
                "Healthy": True,
                "IsActiveNode": False,
                "AvailableNodes": [{"Hostname": "a"}, {"Hostname": "b"}, {"Hostname": "c"}],
            },
        },
        "/api/problems": [{"Key": "db-1"}, {"Key": "db-2"}],
        "/api/audit-failure-detection": [{"Id": 3}, {"Id": 1}, {"Id": 7}, {"Id": 2}],
        "/api/agents-failed-seeds": [{"SeedId": 10}, {"SeedId": 11}, {"SeedId": 12}, {"SeedId": 13}],
    }
    routes.update(overrides)
    return routes


def test_fetch_metrics_aggregates_all_endpoints(make_http_client):
    client = OrchestratorClient(make_http_client(_routes()), API_URI)
    metrics = client.fetch_metrics()

    assert metrics.available_nodes == 3
    assert metrics.healthy is True
    assert metrics.is_active_node is False
    assert metrics.problems == 2
    assert metrics.last_failover_id == 7
    assert metrics.failed_seeds == 4


def test_trailing_slash_on_api_root(make_http_client):
    client = OrchestratorClient(make_http_client(_routes()), API_URI + "/")
    assert client.fetch_metrics().problems == 2


def test_last_failover_id_is_max():
    assert last_failover_id([{"Id": 3}, {"Id": 1}, {"Id": 7}, {"Id": 2}]) == 7


def test_last_failover_id_empty_list_is_zero():
    assert last_failover_id([]) == 0
    assert last_failover_id(None) == 0


def test_last_failover_id_accepts_go_field_casing():
    assert last_failover_id([{"ID": 4}, {"id": 9}]) == 9


def test_last_failover_id_rejects_non_integer():
    with pytest.raises(DecodeError):
        last_failover_id([{"Id": "seven"}])


def test_counts_follow_list_lengths(make_http_client):
    routes = _routes(**{
        "/api/problems": [{}] * 5,
        "/api/agents-failed-seeds": [{"SeedId": i} for i in range(9)],
    })
    metrics = OrchestratorClient(make_http_client(routes), API_URI).fetch_metrics()

    assert metrics.problems == 5
    assert metrics.failed_seeds == 9


def test_null_lists_count_as_empty(make_http_client):
    routes = _routes(**{
        "/api/problems": None,
        "/api/audit-failure-detection": None,
        "/api/agents-failed-seeds": None,
    })
    metrics = OrchestratorClient(make_http_client(routes), API_URI).fetch_metrics()

    assert metrics.problems == 0
    assert metrics.last_failover_id == 0
    assert metrics.failed_seeds == 0


def test_failed_audit_call_fails_whole_fetch(make_http_client):
    routes = _routes()
    client = OrchestratorClient(make_http_client(routes), API_URI)

    routes["/api/audit-failure-detection"] = 500
    result = None
    with pytest.raises(ProtocolError):
        result = client.fetch_metrics()
    assert result is None


def test_network_error_on_seeds_fails_whole_fetch(make_http_client):
    routes = _routes()
    client = OrchestratorClient(make_http_client(routes), API_URI)

    routes["/api/agents-failed-seeds"] = httpx.ReadTimeout("timed out")
    with pytest.raises(ConnectError):
        client.fetch_metrics()


def test_construction_fails_when_any_endpoint_fails(make_http_client):
    with pytest.raises(ProtocolError, match="Orchestrator"):
        OrchestratorClient(make_http_client(_routes(**{"/api/problems": 404})), API_URI)


def test_problems_must_be_a_list(make_http_client):
    with pytest.raises(DecodeError):
        OrchestratorClient(make_http_client(_routes(**{"/api/problems": {"oops": 1}})), API_URI)


def test_parse_status_without_details():
    assert parse_status({"Code": "ERROR"}) == {
        "available_nodes": 0,
        "healthy": False,
        "is_active_node": False,
    }


def test_parse_status_rejects_non_boolean_health():
    with pytest.raises(DecodeError):
        parse_status({"Details": {"Healthy": "yes"}})


def test_null_failover_id_counts_as_zero():
    assert last_failover_id([{"Id": None}]) == 0
    assert last_failover_id([{"Id": None}, {"Id": 4}]) == 4
