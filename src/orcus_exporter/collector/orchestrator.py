from __future__ import annotations

from orcus_exporter.client.orchestrator import OrchestratorClient
from orcus_exporter.collector.base import GAUGE, BackendCollector, MetricSpec, bool_to_float
from orcus_exporter.metrics import OrchestratorMetrics


class OrchestratorCollector(BackendCollector):

    # last_failover_id is an id, not a count; exposed as a gauge so the
    # sample keeps its name (counters get a _total suffix)
    metric_specs = (
        MetricSpec("cluster_size", "Number of nodes in Orchestrator cluster", GAUGE,
                   lambda m: m.available_nodes),
        MetricSpec("is_active_node", "If this node is active Orchestrator node", GAUGE,
                   lambda m: bool_to_float(m.is_active_node)),
        MetricSpec("is_healthy", "Orchestrator node health status", GAUGE,
                   lambda m: bool_to_float(m.healthy)),
        MetricSpec("problems", "Count of MySQL clusters with problems", GAUGE,
                   lambda m: m.problems),
        MetricSpec("last_failover_id", "ID of last failover", GAUGE,
                   lambda m: m.last_failover_id),
        MetricSpec("failed_seeds", "Count of failed agent seeds", GAUGE,
                   lambda m: m.failed_seeds),
    )

    def __init__(self, client: OrchestratorClient, namespace: str = "orchestrator"):
        super().__init__(client, namespace)

    def display_name(self) -> str:
        return "Orchestrator"

    def _fetch(self) -> OrchestratorMetrics:
        return self._client.fetch_metrics()
