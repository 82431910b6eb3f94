"""
Bootstrap with retries.

The only place the exporter deliberately blocks waiting on a backend:
at startup, keep rebuilding a client until its self-check passes or the
retry budget runs out.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from orcus_exporter.errors import ConfigError, ExporterError

log = logging.getLogger(__name__)

T = TypeVar("T")


def create_with_retries(
    service: str,
    factory: Callable[[], T],
    retries: int,
    retry_interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``factory`` up to ``retries + 1`` times and return the first success.

    Sleeps ``retry_interval`` seconds after every failed attempt except the
    last one. If every attempt fails, the last attempt's error is raised.
    ConfigError is raised straight away: a bad credentials file does not
    get better by waiting.
    """
    last_error: Optional[ExporterError] = None

    for attempt in range(retries + 1):
        try:
            return factory()
        except ConfigError:
            raise
        except ExporterError as exc:
            last_error = exc
            if attempt < retries:
                log.warning(
                    "Could not create %s client (attempt %d/%d): %s. Retrying in %.1fs...",
                    service, attempt + 1, retries + 1, exc, retry_interval,
                )
                sleep(retry_interval)

    assert last_error is not None
    raise last_error
