"""oauth2_proxy collector. Liveness only: the up gauge is the whole metric surface."""

from __future__ import annotations

from orcus_exporter.client.oauth2_proxy import Oauth2ProxyClient
from orcus_exporter.collector.base import BackendCollector


class Oauth2ProxyCollector(BackendCollector):

    def __init__(self, client: Oauth2ProxyClient, namespace: str = "oauth2_proxy"):
        super().__init__(client, namespace)

    def display_name(self) -> str:
        return "oauth2_proxy"

    def _fetch(self) -> None:
        self._client.get_status()
