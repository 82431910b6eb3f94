"""
Base client interface.

A client owns the connection to exactly one backend and is only ever
called by the collector that wraps it. HTTP clients share the helpers
here so every backend maps transport failures to the same error types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import httpx

from orcus_exporter.errors import ConfigError, ConnectError, DecodeError, ProtocolError


def new_http_client(timeout_seconds: float, ssl_verify: bool) -> httpx.Client:
    """Build the httpx client a single backend will use for its lifetime."""
    return httpx.Client(timeout=timeout_seconds, verify=ssl_verify)


def lookup(obj: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive key lookup.

    Orcus and Orchestrator are written in Go and their JSON keys follow
    the struct field names, which has drifted between releases
    (``ID`` vs ``Id``), so match the way encoding/json does.
    """
    if key in obj:
        return obj[key]
    lowered = key.lower()
    for k, v in obj.items():
        if k.lower() == lowered:
            return v
    return default


class BackendClient(ABC):
    """Interface for all backend clients."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this backend."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class HTTPBackendClient(BackendClient):
    """Client for a backend reachable over plain HTTP GETs."""

    def __init__(self, http_client: httpx.Client, api_endpoint: str):
        self._http = http_client
        self._api_endpoint = api_endpoint

    @property
    def api_endpoint(self) -> str:
        return self._api_endpoint

    def _get(self, url: Optional[str] = None) -> httpx.Response:
        """GET a URL and require a 200. The body is always read in full."""
        url = url or self._api_endpoint
        try:
            response = self._http.get(url)
        except httpx.InvalidURL as exc:
            raise ConfigError(f"invalid backend URI {url!r}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ConnectError(f"failed to get {url}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise ProtocolError(
                f"expected {int(httpx.codes.OK)} response from {url}, got {response.status_code}"
            )
        return response

    def _get_json(self, url: Optional[str] = None) -> Any:
        response = self._get(url)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"failed to parse response body {response.text!r}: {exc}") from exc

    def close(self) -> None:
        self._http.close()
