"""
Error types raised by backend clients.

Everything a client can fail with is an ExporterError. The bootstrap
retry loop and the collectors only ever catch this family, so anything
else (a bug) still surfaces with a traceback.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for backend failures."""


class ConfigError(ExporterError):
    """Credentials or TLS material is missing or malformed. Never retried."""


class ConnectError(ExporterError):
    """Network, socket or connection pool failure."""


class ProtocolError(ExporterError):
    """Backend answered with a non-success HTTP status."""


class DecodeError(ExporterError):
    """Response body did not match the expected schema."""


class QueryError(ExporterError):
    """A status query against the SQL backend failed."""
