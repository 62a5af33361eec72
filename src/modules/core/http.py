"""Outbound HTTP helpers shared by the gateway adapters.

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set
  by ``CorrelationIdMiddleware``.
- Simple retry policy with exponential backoff for transport errors and 5xx.
  Only requests the caller marks as retryable are repeated.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx
import structlog
from django.conf import settings

from modules.core.middleware import correlation_id_var

logger = structlog.get_logger(__name__)


def request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras."""
    headers: dict[str, str] = {}
    request_id = correlation_id_var.get()
    if request_id:
        headers["X-Request-ID"] = request_id
    if extra:
        headers.update(extra)
    return headers


def retry_policy() -> tuple[int, float, float]:
    """Return (max_attempts, backoff_base_seconds, max_sleep_seconds)."""
    return (
        max(1, getattr(settings, "HTTP_RETRY_MAX", 3)),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
        getattr(settings, "HTTP_RETRY_MAX_SLEEP", 2.0),
    )


def should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    """Retry only on transport errors or HTTP 5xx."""
    if exc is not None:
        return True
    return resp is not None and 500 <= resp.status_code < 600


def send(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    retryable: bool = False,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, retrying idempotent calls with exponential backoff.

    Returns the last response (any status) or raises the last
    ``httpx.RequestError`` once the attempts are exhausted.
    """
    max_attempts, backoff, cap = retry_policy()
    if not retryable:
        max_attempts = 1

    attempt = 0
    while True:
        resp: Optional[httpx.Response] = None
        exc: Optional[httpx.RequestError] = None
        try:
            resp = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            exc = e

        attempt += 1
        if attempt >= max_attempts or not should_retry(resp, exc):
            if exc is not None:
                raise exc
            return resp

        logger.warning(
            "http.retrying",
            method=method,
            url=url,
            attempt=attempt,
            status_code=resp.status_code if resp is not None else None,
        )
        sleep_s = backoff * (2 ** (attempt - 1))
        if sleep_s > 0:
            time.sleep(min(sleep_s, cap))
