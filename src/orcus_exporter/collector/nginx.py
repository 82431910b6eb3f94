"""
nginx stub_status collector. Counter samples are exposed with the
usual _total suffix, e.g. nginx_connections_accepted_total.
"""

from __future__ import annotations

from orcus_exporter.client.nginx import NginxClient
from orcus_exporter.collector.base import COUNTER, GAUGE, BackendCollector, MetricSpec
from orcus_exporter.metrics import NginxStubStatus


class NginxCollector(BackendCollector):

    metric_specs = (
        MetricSpec("connections_active", "Active client connections", GAUGE,
                   lambda m: m.connections_active),
        MetricSpec("connections_accepted", "Accepted client connections", COUNTER,
                   lambda m: m.connections_accepted),
        MetricSpec("connections_handled", "Handled client connections", COUNTER,
                   lambda m: m.connections_handled),
        MetricSpec("connections_reading", "Connections where nginx is reading the request header", GAUGE,
                   lambda m: m.connections_reading),
        MetricSpec("connections_writing", "Connections where nginx is writing the response back to the client", GAUGE,
                   lambda m: m.connections_writing),
        MetricSpec("connections_waiting", "Idle client connections", GAUGE,
                   lambda m: m.connections_waiting),
        MetricSpec("http_requests", "Total http requests", COUNTER,
                   lambda m: m.http_requests),
    )

    def __init__(self, client: NginxClient, namespace: str = "nginx"):
        super().__init__(client, namespace)

    def display_name(self) -> str:
        return "nginx"

    def _fetch(self) -> NginxStubStatus:
        return self._client.fetch_metrics()
