"""
Client for the Orcus sync service. One GET returning a flat JSON object
of sync counters.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import httpx

from orcus_exporter.client.base import HTTPBackendClient, lookup
from orcus_exporter.errors import DecodeError, ExporterError
from orcus_exporter.metrics import OrcusMetrics


def _number(body: Mapping[str, Any], key: str) -> float:
    value = lookup(body, key, 0)
    if value is None:
        return 0
    # bool is an int subclass, but true/false is not a counter
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"field {key!r} is not a number: {value!r}")
    # json accepts NaN, Infinity, overflowing literals like 1e400 and
    # integers too large for a float
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise DecodeError(f"field {key!r} is not a finite number: {value!r}")
    return value


def _counter(body: Mapping[str, Any], key: str) -> int:
    value = _number(body, key)
    if isinstance(value, float) and not value.is_integer():
        raise DecodeError(f"field {key!r} is not an integer: {value!r}")
    if value < 0:
        raise DecodeError(f"field {key!r} is negative: {value!r}")
    return int(value)


def parse_orcus_metrics(body: Any) -> OrcusMetrics:
    """Map the decoded JSON body onto OrcusMetrics. Missing or null fields count as zero."""
    if not isinstance(body, dict):
        raise DecodeError(f"expected a JSON object, got {type(body).__name__}")

    return OrcusMetrics(
        last_sync_duration_seconds=float(_number(body, "LastSyncDurationSeconds")),
        total_sync_clusters=_counter(body, "TotalSyncClusters"),
        total_sync_errors=_counter(body, "TotalSyncErrors"),
        total_sync_count=_counter(body, "TotalSyncCount"),
    )


class OrcusClient(HTTPBackendClient):

    def __init__(self, http_client: httpx.Client, api_endpoint: str):
        super().__init__(http_client, api_endpoint)
        try:
            self.fetch_metrics()
        except ExporterError as exc:
            raise type(exc)(f"failed to create Orcus client: {exc}") from exc

    def fetch_metrics(self) -> OrcusMetrics:
        return parse_orcus_metrics(self._get_json())

    def name(self) -> str:
        return f"Orcus ({self._api_endpoint})"
