"""
Composition root: bootstrap every enabled backend and register its
collector.

Bootstrap is the one blocking, retried phase. If any enabled backend
can't be reached within the retry budget the whole startup fails, before
the metrics endpoint is ever exposed. Once running, a backend going away
only turns its own <namespace>_up to 0.
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Tuple, Type

import httpx
from prometheus_client import CollectorRegistry, Gauge

from orcus_exporter import __version__
from orcus_exporter.client.base import BackendClient, HTTPBackendClient, new_http_client
from orcus_exporter.client.nginx import NginxClient
from orcus_exporter.client.oauth2_proxy import Oauth2ProxyClient
from orcus_exporter.client.orchestrator import OrchestratorClient
from orcus_exporter.client.orcus import OrcusClient
from orcus_exporter.client.retry import create_with_retries
from orcus_exporter.client.xtradb_cluster import XtradbClusterClient
from orcus_exporter.collector.base import BackendCollector
from orcus_exporter.collector.nginx import NginxCollector
from orcus_exporter.collector.oauth2_proxy import Oauth2ProxyCollector
from orcus_exporter.collector.orchestrator import OrchestratorCollector
from orcus_exporter.collector.orcus import OrcusCollector
from orcus_exporter.collector.xtradb_cluster import XtradbClusterCollector
from orcus_exporter.config import BackendSettings, ExporterConfig

log = logging.getLogger(__name__)

HTTPClientFactory = Callable[[float, bool], httpx.Client]


@dataclass
class BuiltRegistry:
    """The registry plus the clients behind it, so they can be closed on exit."""

    registry: CollectorRegistry
    clients: List[BackendClient] = field(default_factory=list)
    collectors: List[BackendCollector] = field(default_factory=list)

    def close(self) -> None:
        for client in self.clients:
            client.close()
        self.clients.clear()


def _make_http_client(
    client_cls: Type[HTTPBackendClient],
    config: ExporterConfig,
    http_client_factory: HTTPClientFactory,
    uri: str,
) -> HTTPBackendClient:
    http_client = http_client_factory(config.timeout, config.ssl_verify)
    try:
        return client_cls(http_client, uri)
    except Exception:
        http_client.close()
        raise


def _backends(
    config: ExporterConfig, http_client_factory: HTTPClientFactory
) -> List[Tuple[str, BackendSettings, Callable[[str], BackendClient], Type[BackendCollector]]]:
    def http(client_cls):
        return functools.partial(_make_http_client, client_cls, config, http_client_factory)

    def xtradb(my_cnf: str) -> XtradbClusterClient:
        return XtradbClusterClient(my_cnf, ssl_verify=config.ssl_verify)

    return [
        ("nginx", config.nginx, http(NginxClient), NginxCollector),
        ("oauth2_proxy", config.oauth2_proxy, http(Oauth2ProxyClient), Oauth2ProxyCollector),
        ("orcus", config.orcus, http(OrcusClient), OrcusCollector),
        ("orchestrator", config.orchestrator, http(OrchestratorClient), OrchestratorCollector),
        ("xtradb_cluster", config.xtradb_cluster, xtradb, XtradbClusterCollector),
    ]


def build_registry(
    config: ExporterConfig,
    sleep: Callable[[float], None] = time.sleep,
    http_client_factory: HTTPClientFactory = new_http_client,
) -> BuiltRegistry:
    """Bootstrap all enabled backends and return a registry ready to scrape.

    Raises the bootstrap error of the first backend that could not be
    created. Clients already created by then are closed first.
    """
    registry = CollectorRegistry()

    build_info = Gauge(
        "orcus_exporter_build_info",
        "Exporter build information",
        ["version"],
        registry=registry,
    )
    build_info.labels(version=__version__).set(1)

    built = BuiltRegistry(registry=registry)

    try:
        for service, settings, make_client, collector_cls in _backends(config, http_client_factory):
            if not settings.enabled:
                log.info("Collector %s disabled", service)
                continue

            client = create_with_retries(
                service,
                functools.partial(make_client, settings.uri),
                config.retries,
                config.retry_interval,
                sleep=sleep,
            )
            built.clients.append(client)

            collector = collector_cls(client, service)
            registry.register(collector)
            built.collectors.append(collector)
            log.info("Registered %s collector for %s", service, client.name())
    except Exception:
        built.close()
        raise

    return built
