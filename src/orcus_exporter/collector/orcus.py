from __future__ import annotations

from orcus_exporter.client.orcus import OrcusClient
from orcus_exporter.collector.base import COUNTER, GAUGE, BackendCollector, MetricSpec
from orcus_exporter.metrics import OrcusMetrics


class OrcusCollector(BackendCollector):

    metric_specs = (
        MetricSpec("clusters_synced_total", "Total synced clusters", COUNTER,
                   lambda m: m.total_sync_clusters),
        MetricSpec("sync_errors_total", "Total errors during sync", COUNTER,
                   lambda m: m.total_sync_errors),
        MetricSpec("sync_count_total", "Total count of sync tasks", COUNTER,
                   lambda m: m.total_sync_count),
        MetricSpec("last_sync_duration_seconds", "Duration of last sync process", GAUGE,
                   lambda m: m.last_sync_duration_seconds),
    )

    def __init__(self, client: OrcusClient, namespace: str = "orcus"):
        super().__init__(client, namespace)

    def display_name(self) -> str:
        return "Orcus"

    def _fetch(self) -> OrcusMetrics:
        return self._client.fetch_metrics()
