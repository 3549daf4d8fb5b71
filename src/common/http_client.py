"""Synchronous HTTP helpers (requests) for one-shot fetches.

Used where no event loop is running, e.g. refreshing the Mojang version
manifest at startup. Transport failures are retried with exponential backoff;
HTTP error statuses are returned or raised immediately, never retried.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.errors import MalformedInputError, RegistryRejectionError, TransportError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, shorten, Timer

logger = logging.getLogger(__name__)


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT, "Accept": "application/json"}
    if headers:
        merged.update(headers)
    return merged


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries, with DEBUG traces.

    Returns:
        Tuple of (status_code, headers_dict, body_text)

    Raises:
        TransportError: every attempt failed at the transport level.
    """
    safe_target = safe_url(url)
    last_exception: Optional[BaseException] = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_default_headers(headers),
                    **kwargs
                )

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                return response.status_code, dict(response.headers), response.text

            except requests.RequestException as exc:  # includes Timeout and ConnectionError
                last_exception = exc
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="GET",
                        outcome=type(exc).__name__,
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
        if attempt + 1 < Constants.HTTP_RETRY_MAX:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))

    raise TransportError(safe_target, Constants.HTTP_RETRY_MAX, last_exception)


def get_json(
    url: str,
    *,
    registry: str,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Any:
    """Perform GET request and parse the JSON body.

    Args:
        url: Target URL
        registry: Human-readable source tag used in error messages (e.g. "Mojang")
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Raises:
        RegistryRejectionError: non-2xx status.
        MalformedInputError: body is not JSON.
        TransportError: see robust_get.
    """
    status_code, _, text = robust_get(url, headers=headers, **kwargs)

    if not 200 <= status_code < 300:
        body = shorten(text)
        logger.error(
            "%s status %s url %s body %s", registry, status_code, safe_url(url), body,
            extra=extra_context(event="http_response", outcome="rejected", status_code=status_code),
        )
        raise RegistryRejectionError(registry, status_code, safe_url(url), body)

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(
            f"{registry} parse error: {exc} body {shorten(text)}"
        ) from exc
