"""
Client for a Percona XtraDB (Galera) cluster node.

Credentials come from a MySQL option file (~/.my.cnf style), [client]
section. The node is asked for three wsrep status variables over a
pooled connection that is capped at one open / one idle connection and
recycled every minute, so a stale connection is never kept for long.
"""

from __future__ import annotations

import configparser
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from orcus_exporter.client.base import BackendClient
from orcus_exporter.errors import ConfigError, ConnectError, ExporterError, QueryError
from orcus_exporter.metrics import XtradbClusterMetrics

log = logging.getLogger(__name__)

CREDENTIALS_SECTION = "client"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3306

# Pool bounds: one connection, reused for at most a minute
POOL_SIZE = 1
CONN_MAX_LIFETIME_SECONDS = 60

CLUSTER_SIZE_QUERY = "SHOW STATUS LIKE 'wsrep_cluster_size'"
NODE_STATE_QUERY = "SHOW STATUS LIKE 'wsrep_local_state'"
CLUSTER_STATUS_QUERY = "SHOW STATUS LIKE 'wsrep_cluster_status'"


@dataclass(frozen=True)
class MySQLConnectionSettings:
    user: str
    password: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    socket: Optional[str] = None
    ssl_context: Optional[ssl.SSLContext] = field(default=None, compare=False, repr=False)

    def url(self) -> URL:
        if self.socket:
            return URL.create("mysql+pymysql", username=self.user, password=self.password)
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
        )

    def connect_args(self) -> Dict[str, Any]:
        args: Dict[str, Any] = {}
        if self.socket:
            args["unix_socket"] = self.socket
        if self.ssl_context is not None:
            args["ssl"] = self.ssl_context
        return args


def cluster_status_code(status: str) -> int:
    """Only a Primary component counts as a healthy cluster."""
    return 1 if status == "Primary" else 0


def _option(section: configparser.SectionProxy, key: str) -> str:
    value = section.get(key, fallback="") or ""
    value = value.strip()
    # my.cnf allows quoted values
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value


def build_tls_context(ssl_ca: str, ssl_cert: str, ssl_key: str, ssl_verify: bool) -> ssl.SSLContext:
    """TLS settings for the MySQL connection, built locally for this client only."""
    try:
        context = ssl.create_default_context(cafile=ssl_ca)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigError(f"failed to parse pem-encoded CA certificates from {ssl_ca}: {exc}") from exc

    if ssl_cert and ssl_key:
        try:
            context.load_cert_chain(certfile=ssl_cert, keyfile=ssl_key)
        except (OSError, ssl.SSLError) as exc:
            raise ConfigError(
                f"failed to parse pem-encoded SSL cert {ssl_cert} or SSL key {ssl_key}: {exc}"
            ) from exc

    if not ssl_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def parse_my_cnf(path: str, ssl_verify: bool = False) -> MySQLConnectionSettings:
    """Read connection settings from the [client] section of a MySQL option file.

    Raises ConfigError when the file can't be read, user or password is
    missing, or the referenced TLS material is unusable. None of these
    are connectivity problems, so they are never retried.
    """
    # MySQL option files may have keys without values (e.g. "skip-ssl")
    parser = configparser.ConfigParser(allow_no_value=True, strict=False, interpolation=None)
    try:
        with open(path) as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as exc:
        raise ConfigError(f"failed reading ini file {path}: {exc}") from exc

    if not parser.has_section(CREDENTIALS_SECTION):
        raise ConfigError(f"no [{CREDENTIALS_SECTION}] section in {path}")
    section = parser[CREDENTIALS_SECTION]

    user = _option(section, "user")
    password = _option(section, "password")
    if not user or not password:
        raise ConfigError(f"no user or password specified under [{CREDENTIALS_SECTION}] in {path}")

    host = _option(section, "host") or DEFAULT_HOST
    port_raw = _option(section, "port")
    try:
        port = int(port_raw) if port_raw else DEFAULT_PORT
    except ValueError as exc:
        raise ConfigError(f"invalid port {port_raw!r} in {path}") from exc

    ssl_ca = _option(section, "ssl-ca")
    ssl_context = None
    if ssl_ca:
        ssl_context = build_tls_context(
            ssl_ca, _option(section, "ssl-cert"), _option(section, "ssl-key"), ssl_verify
        )

    return MySQLConnectionSettings(
        user=user,
        password=password,
        host=host,
        port=port,
        socket=_option(section, "socket") or None,
        ssl_context=ssl_context,
    )


class XtradbClusterClient(BackendClient):

    def __init__(self, my_cnf: str, ssl_verify: bool = False):
        self._my_cnf = my_cnf
        settings = parse_my_cnf(my_cnf, ssl_verify)

        self._engine: Engine = create_engine(
            settings.url(),
            pool_size=POOL_SIZE,
            max_overflow=0,
            pool_recycle=CONN_MAX_LIFETIME_SECONDS,
            connect_args=settings.connect_args(),
        )

        try:
            self.fetch_metrics()
        except ExporterError as exc:
            self._engine.dispose()
            raise type(exc)(f"failed to create XtraDB cluster client: {exc}") from exc

    def _status(self, conn: Connection, query: str) -> str:
        try:
            row = conn.execute(text(query)).fetchone()
        except SQLAlchemyError as exc:
            raise QueryError(f"failed to get data from database ({query}): {exc}") from exc
        if row is None:
            raise QueryError(f"no rows returned for {query}")
        # SHOW STATUS rows are (Variable_name, Value)
        value = row[1]
        if isinstance(value, bytes):
            value = value.decode()
        return "" if value is None else str(value)

    def _status_int(self, conn: Connection, query: str) -> int:
        raw = self._status(conn, query)
        try:
            return int(raw)
        except ValueError as exc:
            raise QueryError(f"expected an integer for {query}, got {raw!r}") from exc

    def fetch_metrics(self) -> XtradbClusterMetrics:
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise ConnectError(f"failed to open connection to database: {exc}") from exc

        with conn:
            cluster_size = self._status_int(conn, CLUSTER_SIZE_QUERY)
            node_state = self._status_int(conn, NODE_STATE_QUERY)
            cluster_status = self._status(conn, CLUSTER_STATUS_QUERY)

        log.debug("XtraDB: size=%d state=%d status=%r", cluster_size, node_state, cluster_status)

        return XtradbClusterMetrics(
            cluster_size=cluster_size,
            node_state=node_state,
            cluster_status=cluster_status_code(cluster_status),
        )

    def name(self) -> str:
        return f"XtraDB cluster ({self._my_cnf})"

    def close(self) -> None:
        self._engine.dispose()
