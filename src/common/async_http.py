"""Async HTTP client (aiohttp) shared by the registry clients."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.errors import MalformedInputError, RegistryRejectionError, TransportError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, shorten, Timer

logger = logging.getLogger(__name__)


class AsyncHttpClient:
    """Owns one ClientSession; hands out parsed JSON bodies.

    Create one per command run and inject it into the registry clients::

        async with AsyncHttpClient() as http:
            client = ModrinthClient(http)
    """

    def __init__(
        self,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        base_delay: Optional[float] = None,
    ):
        """Initialize the client.

        Args:
            timeout: Total request timeout in seconds.
            retries: Total attempts per request on transport failure.
            base_delay: First backoff delay in seconds; doubled per attempt.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout or Constants.REQUEST_TIMEOUT)
        self._retries = max(1, retries if retries is not None else Constants.HTTP_RETRY_MAX)
        self._base_delay = (
            base_delay if base_delay is not None else Constants.HTTP_RETRY_BASE_DELAY_SEC
        )
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> aiohttp.ClientSession:
        """Start the HTTP session if needed and return it."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=Constants.MAX_CONCURRENCY * 4)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                headers={"User-Agent": Constants.USER_AGENT},
            )
        return self._session

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AsyncHttpClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def get_text(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, str]:
        """GET ``url`` and return ``(status, body_text)``.

        Transport failures (connection errors, timeouts) are retried with
        exponential backoff. Any response, whatever its status, is returned
        as-is.
        """
        session = await self.start()
        safe_target = safe_url(url)
        last_exc: Optional[BaseException] = None

        for attempt in range(self._retries):
            with Timer() as t:
                try:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "HTTP request",
                            extra=extra_context(
                                event="http_request",
                                component="async_http",
                                action="GET",
                                target=safe_target,
                                attempt=attempt + 1,
                            ),
                        )
                    async with session.get(url, headers=headers) as response:
                        text = await response.text()
                        if is_debug_enabled(logger):
                            logger.debug(
                                "HTTP response",
                                extra=extra_context(
                                    event="http_response",
                                    component="async_http",
                                    action="GET",
                                    status_code=response.status,
                                    duration_ms=t.duration_ms(),
                                    target=safe_target,
                                ),
                            )
                        return response.status, text
                except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                    last_exc = exc
                    logger.debug(
                        "HTTP transport failure",
                        extra=extra_context(
                            event="http_exception",
                            component="async_http",
                            outcome=type(exc).__name__,
                            attempt=attempt + 1,
                            target=safe_target,
                        ),
                    )
            if attempt + 1 < self._retries:
                await asyncio.sleep(self._base_delay * (2 ** attempt))

        logger.warning("Giving up on %s after %d attempts: %s", safe_target, self._retries, last_exc)
        raise TransportError(safe_target, self._retries, last_exc)

    async def get_json(
        self,
        url: str,
        *,
        registry: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET ``url`` and parse its JSON body.

        Raises:
            RegistryRejectionError: non-2xx status (not retried).
            MalformedInputError: body is not valid JSON.
            TransportError: retries exhausted.
        """
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        status, text = await self.get_text(url, headers=request_headers)
        if not 200 <= status < 300:
            body = shorten(text)
            logger.error(
                "%s status %s url %s body %s", registry, status, safe_url(url), body,
                extra=extra_context(event="http_response", outcome="rejected", status_code=status),
            )
            raise RegistryRejectionError(registry, status, safe_url(url), body)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"{registry} parse error: {exc} body {shorten(text)}") from exc
