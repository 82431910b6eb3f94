"""
Client for the Orchestrator HTTP API.

Metrics come from four separate endpoints under the API root:

    /status                   health of this node and the raft peers
    /problems                 instances with replication problems
    /audit-failure-detection  failure detection audit log
    /agents-failed-seeds      seed operations that failed

A snapshot is only returned when all four calls succeed. If any one
fails, the whole fetch fails, so the exporter never publishes a mix of
fresh and missing values.
"""

from __future__ import annotations

import logging
from typing import Any, List

import httpx

from orcus_exporter.client.base import HTTPBackendClient, lookup
from orcus_exporter.errors import DecodeError, ExporterError
from orcus_exporter.metrics import OrchestratorMetrics

log = logging.getLogger(__name__)

STATUS_PATH = "/status"
PROBLEMS_PATH = "/problems"
FAILOVERS_PATH = "/audit-failure-detection"
FAILED_SEEDS_PATH = "/agents-failed-seeds"


def _as_list(body: Any, what: str) -> List[Any]:
    # Go marshals an empty slice as null
    if body is None:
        return []
    if not isinstance(body, list):
        raise DecodeError(f"expected a JSON array for {what}, got {type(body).__name__}")
    return body


def _as_bool(value: Any, field: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"field {field!r} is not a boolean: {value!r}")
    return value


def parse_status(body: Any) -> dict:
    """Pull the health fields out of a /status response."""
    if not isinstance(body, dict):
        raise DecodeError(f"expected a JSON object for status, got {type(body).__name__}")

    details = lookup(body, "Details") or {}
    if not isinstance(details, dict):
        raise DecodeError(f"expected status Details to be an object, got {details!r}")

    return {
        "available_nodes": len(_as_list(lookup(details, "AvailableNodes"), "AvailableNodes")),
        "healthy": _as_bool(lookup(details, "Healthy"), "Healthy"),
        "is_active_node": _as_bool(lookup(details, "IsActiveNode"), "IsActiveNode"),
    }


def last_failover_id(body: Any) -> int:
    """Highest audit record id, or 0 when the audit log is empty."""
    last_id = 0
    for record in _as_list(body, "failover audit"):
        if not isinstance(record, dict):
            raise DecodeError(f"expected failover audit record to be an object, got {record!r}")
        record_id = lookup(record, "Id", 0)
        if record_id is None:
            record_id = 0
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            raise DecodeError(f"failover audit id is not an integer: {record_id!r}")
        last_id = max(last_id, record_id)
    return last_id


class OrchestratorClient(HTTPBackendClient):

    def __init__(self, http_client: httpx.Client, api_endpoint: str):
        super().__init__(http_client, api_endpoint.rstrip("/"))
        try:
            self.fetch_metrics()
        except ExporterError as exc:
            raise type(exc)(f"failed to create Orchestrator client: {exc}") from exc

    def _url(self, path: str) -> str:
        return self._api_endpoint + path

    def fetch_metrics(self) -> OrchestratorMetrics:
        """Run all four API calls. Any failure aborts the whole fetch."""
        status = parse_status(self._get_json(self._url(STATUS_PATH)))
        # Problem entries are opaque; only how many there are matters
        problems = _as_list(self._get_json(self._url(PROBLEMS_PATH)), "problems")
        failover_id = last_failover_id(self._get_json(self._url(FAILOVERS_PATH)))
        failed_seeds = _as_list(self._get_json(self._url(FAILED_SEEDS_PATH)), "failed seeds")

        log.debug(
            "Orchestrator: %d nodes, %d problems, last failover %d, %d failed seeds",
            status["available_nodes"], len(problems), failover_id, len(failed_seeds),
        )

        return OrchestratorMetrics(
            available_nodes=status["available_nodes"],
            healthy=status["healthy"],
            is_active_node=status["is_active_node"],
            problems=len(problems),
            last_failover_id=failover_id,
            failed_seeds=len(failed_seeds),
        )

    def name(self) -> str:
        return f"Orchestrator ({self._api_endpoint})"
