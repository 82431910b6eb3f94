from __future__ import annotations

from orcus_exporter.client.xtradb_cluster import XtradbClusterClient
from orcus_exporter.collector.base import GAUGE, BackendCollector, MetricSpec
from orcus_exporter.metrics import XtradbClusterMetrics


class XtradbClusterCollector(BackendCollector):

    metric_specs = (
        MetricSpec("cluster_size", "Number of nodes in Xtradb cluster", GAUGE,
                   lambda m: m.cluster_size),
        MetricSpec("node_state", "State code of Xtradb cluster node", GAUGE,
                   lambda m: m.node_state),
        MetricSpec("cluster_status", "State code of Xtradb cluster status", GAUGE,
                   lambda m: m.cluster_status),
    )

    def __init__(self, client: XtradbClusterClient, namespace: str = "xtradb_cluster"):
        super().__init__(client, namespace)

    def display_name(self) -> str:
        return "Xtradb cluster"

    def _fetch(self) -> XtradbClusterMetrics:
        return self._client.fetch_metrics()
