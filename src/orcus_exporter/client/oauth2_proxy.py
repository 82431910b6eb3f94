"""
oauth2_proxy liveness client. Hits the /ping endpoint; there are no
numbers to collect, a 200 is the whole signal.
"""

from __future__ import annotations

import httpx

from orcus_exporter.client.base import HTTPBackendClient
from orcus_exporter.errors import ExporterError


class Oauth2ProxyClient(HTTPBackendClient):

    def __init__(self, http_client: httpx.Client, api_endpoint: str):
        super().__init__(http_client, api_endpoint)
        try:
            self.get_status()
        except ExporterError as exc:
            raise type(exc)(f"failed to create oauth2_proxy client: {exc}") from exc

    def get_status(self) -> None:
        """GET the ping endpoint. Raises on anything but a 200."""
        self._get()

    def name(self) -> str:
        return f"oauth2_proxy ({self._api_endpoint})"
