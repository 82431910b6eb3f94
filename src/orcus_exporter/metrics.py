"""
Snapshot types produced by the backend clients.

One snapshot per fetch_metrics() call, built fresh every time and never
reused across scrapes. Collectors read these to fill in their samples.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrcusMetrics:
    """Counters reported by Orcus on its JSON metrics endpoint."""

    last_sync_duration_seconds: float = 0.0
    total_sync_clusters: int = 0
    total_sync_errors: int = 0
    total_sync_count: int = 0


@dataclass(frozen=True)
class OrchestratorMetrics:
    """Aggregated from four Orchestrator API calls.

    Only counts and the highest failover id survive; the individual
    problem / audit / seed records are discarded after decoding.
    """

    available_nodes: int = 0
    healthy: bool = False
    is_active_node: bool = False
    problems: int = 0
    last_failover_id: int = 0
    failed_seeds: int = 0


@dataclass(frozen=True)
class XtradbClusterMetrics:
    cluster_size: int = 0
    node_state: int = 0
    cluster_status: int = 0  # 1 = Primary, 0 = anything else


@dataclass(frozen=True)
class NginxStubStatus:
    """Parsed nginx stub_status page."""

    connections_active: int = 0
    connections_accepted: int = 0
    connections_handled: int = 0
    connections_reading: int = 0
    connections_writing: int = 0
    connections_waiting: int = 0
    http_requests: int = 0
