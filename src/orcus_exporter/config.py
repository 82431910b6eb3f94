"""
Exporter configuration.

Built once by the CLI from its options (or ORCUS_EXPORTER_* environment
variables) and passed down; nothing reads settings from anywhere else.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from orcus_exporter.errors import ConfigError

DEFAULT_LISTEN_ADDRESS = ":9114"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_RETRY_INTERVAL = 5.0
DEFAULT_TIMEOUT = 5.0

DEFAULT_NGINX_URI = "http://127.0.0.1:80/nginx_status"
DEFAULT_OAUTH2_PROXY_URI = "http://127.0.0.1:4180/ping"
DEFAULT_ORCUS_URI = "http://127.0.0.1:3008/metrics"
DEFAULT_ORCHESTRATOR_URI = "http://127.0.0.1:3000/api"
DEFAULT_MY_CNF = os.path.join(os.path.expanduser("~"), ".my.cnf")


@dataclass(frozen=True)
class BackendSettings:
    enabled: bool = True
    uri: str = ""  # file path for the XtraDB cluster backend


@dataclass(frozen=True)
class ExporterConfig:
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH

    # Bootstrap only; steady-state scrapes are never retried
    retries: int = 0
    retry_interval: float = DEFAULT_RETRY_INTERVAL

    timeout: float = DEFAULT_TIMEOUT
    ssl_verify: bool = False

    nginx: BackendSettings = field(default_factory=lambda: BackendSettings(uri=DEFAULT_NGINX_URI))
    oauth2_proxy: BackendSettings = field(
        default_factory=lambda: BackendSettings(uri=DEFAULT_OAUTH2_PROXY_URI)
    )
    orcus: BackendSettings = field(default_factory=lambda: BackendSettings(uri=DEFAULT_ORCUS_URI))
    orchestrator: BackendSettings = field(
        default_factory=lambda: BackendSettings(uri=DEFAULT_ORCHESTRATOR_URI)
    )
    xtradb_cluster: BackendSettings = field(
        default_factory=lambda: BackendSettings(uri=DEFAULT_MY_CNF)
    )

    def __post_init__(self):
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}")
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"metrics path must start with '/', got {self.metrics_path!r}")


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split "host:port" into its parts. An empty host means all interfaces."""
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address must be host:port, got {address!r}")
    try:
        port = int(port_str)
    except ValueError as exc:
        raise ConfigError(f"invalid port in listen address {address!r}") from exc
    if not 0 <= port <= 65535:
        raise ConfigError(f"port out of range in listen address {address!r}")
    return host.strip("[]"), port
