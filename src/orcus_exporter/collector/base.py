"""
Base collector.

A collector wraps exactly one backend client and plugs it into a
prometheus_client registry. Every scrape produces the <namespace>_up
gauge, and, only when the backend answered, one sample per declared
metric. A failed backend never yields a partial set.

Each collector holds a lock around the backend call: at most one fetch
is in flight per collector, so concurrent scrapes of the same backend
queue up instead of sharing the client's connection.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Mapping, Optional

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from orcus_exporter.errors import ExporterError

log = logging.getLogger(__name__)

SERVICE_UP = 1.0
SERVICE_DOWN = 0.0

GAUGE = "gauge"
COUNTER = "counter"


@dataclass(frozen=True)
class MetricSpec:
    """What a subclass declares: short name, help, kind and how to read the value."""

    name: str
    help: str
    kind: str
    value: Callable[[Any], float]


@dataclass(frozen=True)
class MetricDescriptor:
    name: str  # fully qualified, <namespace>_<metric>
    help: str
    kind: str
    value: Optional[Callable[[Any], float]] = None

    def family(self, value: Optional[float] = None) -> Metric:
        """Metric family for this descriptor; without a value it has no samples."""
        if self.kind == COUNTER:
            return CounterMetricFamily(self.name, self.help, value=value)
        return GaugeMetricFamily(self.name, self.help, value=value)


def bool_to_float(val: bool) -> float:
    return 1.0 if val else 0.0


def build_descriptors(namespace: str, specs: Iterable[MetricSpec]) -> Mapping[str, MetricDescriptor]:
    table = {
        spec.name: MetricDescriptor(
            name=f"{namespace}_{spec.name}",
            help=spec.help,
            kind=spec.kind,
            value=spec.value,
        )
        for spec in specs
    }
    return MappingProxyType(table)


class BackendCollector(ABC):
    """prometheus_client custom collector for one backend."""

    metric_specs: tuple = ()

    def __init__(self, client: Any, namespace: str):
        self._client = client
        self._namespace = namespace
        self._metrics = build_descriptors(namespace, self.metric_specs)
        self._up = MetricDescriptor(
            name=f"{namespace}_up",
            help="Status of the last metric scrape",
            kind=GAUGE,
        )
        self._up_value = SERVICE_DOWN
        self._lock = threading.Lock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def metrics(self) -> Mapping[str, MetricDescriptor]:
        return self._metrics

    @abstractmethod
    def display_name(self) -> str:
        ...

    @abstractmethod
    def _fetch(self) -> Any:
        """Call the backend once. Raises ExporterError on failure."""
        ...

    def describe(self) -> List[Metric]:
        """Every family this collector can emit. Never touches the backend."""
        return [self._up.family()] + [d.family() for d in self._metrics.values()]

    def collect(self) -> List[Metric]:
        with self._lock:
            try:
                stats = self._fetch()
            except ExporterError as exc:
                self._up_value = SERVICE_DOWN
                log.error("Error getting %s stats: %s", self.display_name(), exc)
                return [self._up.family(self._up_value)]

            self._up_value = SERVICE_UP
            families = [self._up.family(self._up_value)]
            for descriptor in self._metrics.values():
                families.append(descriptor.family(float(descriptor.value(stats))))
            return families
