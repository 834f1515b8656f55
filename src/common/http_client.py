"""Shared async HTTP client used by the release gatherer and the listing aggregator.

Wraps one ``aiohttp.ClientSession`` so that every concurrent fetch of a run
shares the same connection pool, credentials and user agent. Any response
that is not a success status is raised as ``TransportError``; no retries
are attempted.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.errors import TransportError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class HttpClient:
    """Async GET client with bearer authentication and a fixed user agent.

    The session headers are set at construction and never mutated
    afterwards, so one instance can serve any number of concurrent tasks.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        user_agent: str = Constants.USER_AGENT,
        timeout: int = Constants.REQUEST_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            token: Bearer token sent with every request, if any.
            user_agent: User-Agent header value.
            timeout: Total timeout in seconds for each request.
        """
        self._headers: Dict[str, str] = {"User-Agent": user_agent}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Open the HTTP session."""
        await self._ensure_session()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers=self._headers,
                timeout=self._timeout,
            )
        return self._session

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def get_json(self, url: str, *, context: str) -> Tuple[Any, Dict[str, str]]:
        """GET a JSON document.

        Args:
            url: Target URL.
            context: Human-readable source tag for logs (e.g., "releases").

        Returns:
            Tuple of (parsed JSON, response headers with lowercased names).
        """
        body, headers = await self._get(url, accept="application/json", context=context)
        try:
            return json.loads(body.decode("utf-8-sig")), headers
        except UnicodeDecodeError as exc:
            raise TransportError(url, None, f"response is not UTF-8: {exc}") from exc
        except ValueError as exc:
            raise TransportError(url, None, f"response is not JSON: {exc}") from exc

    async def get_text(self, url: str, *, context: str, accept: str = "application/json") -> str:
        """GET a UTF-8 text document.

        Raises:
            TransportError: On a failed request.
            UnicodeDecodeError: If the body is not UTF-8; callers decide how fatal that is.
        """
        body, _ = await self._get(url, accept=accept, context=context)
        return body.decode("utf-8-sig")

    async def get_bytes(self, url: str, *, context: str) -> bytes:
        """GET a binary payload."""
        body, _ = await self._get(url, accept="application/octet-stream", context=context)
        return body

    async def _get(self, url: str, *, accept: str, context: str) -> Tuple[bytes, Dict[str, str]]:
        """Perform the GET and enforce a success status."""
        session = await self._ensure_session()

        safe_target = safe_url(url)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context,
                    ),
                )
            try:
                async with session.get(url, headers={"Accept": accept}) as response:
                    if not 200 <= response.status < 300:
                        logger.error(
                            "%s request to %s failed with HTTP %s",
                            context, safe_target, response.status,
                        )
                        raise TransportError(url, response.status)
                    body = await response.read()
                    headers = {key.lower(): value for key, value in response.headers.items()}
            except asyncio.TimeoutError as exc:
                logger.error("%s request to %s timed out", context, safe_target)
                raise TransportError(url, None, "timed out") from exc
            except aiohttp.ClientError as exc:
                logger.error("%s connection error: %s", context, exc)
                raise TransportError(url, None, str(exc)) from exc

            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success",
                        status_code=response.status,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context,
                    ),
                )
        return body, headers

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
