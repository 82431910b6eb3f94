"""
Client for nginx's stub_status page. The page is plain text:

    Active connections: 291
    server accepts handled requests
     16630948 16630948 31070465
    Reading: 6 Writing: 179 Waiting: 106
"""

from __future__ import annotations

import re

import httpx

from orcus_exporter.client.base import HTTPBackendClient
from orcus_exporter.errors import DecodeError, ExporterError
from orcus_exporter.metrics import NginxStubStatus

_STUB_STATUS_RE = re.compile(
    r"Active connections:\s*(?P<active>\d+)\s+"
    r"server accepts handled requests\s+"
    r"(?P<accepted>\d+)\s+(?P<handled>\d+)\s+(?P<requests>\d+)\s+"
    r"Reading:\s*(?P<reading>\d+)\s+Writing:\s*(?P<writing>\d+)\s+Waiting:\s*(?P<waiting>\d+)"
)


def parse_stub_status(text: str) -> NginxStubStatus:
    match = _STUB_STATUS_RE.search(text)
    if match is None:
        raise DecodeError(f"failed to parse stub_status response {text!r}")

    values = {k: int(v) for k, v in match.groupdict().items()}
    return NginxStubStatus(
        connections_active=values["active"],
        connections_accepted=values["accepted"],
        connections_handled=values["handled"],
        connections_reading=values["reading"],
        connections_writing=values["writing"],
        connections_waiting=values["waiting"],
        http_requests=values["requests"],
    )


class NginxClient(HTTPBackendClient):

    def __init__(self, http_client: httpx.Client, api_endpoint: str):
        super().__init__(http_client, api_endpoint)
        try:
            self.fetch_metrics()
        except ExporterError as exc:
            raise type(exc)(f"failed to create nginx client: {exc}") from exc

    def fetch_metrics(self) -> NginxStubStatus:
        return parse_stub_status(self._get().text)

    def name(self) -> str:
        return f"nginx ({self._api_endpoint})"
