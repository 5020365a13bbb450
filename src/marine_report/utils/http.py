"""HTTP client utilities for Marine Report."""
import asyncio
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ..errors import MalformedPayload, UpstreamUnavailable
from .retry import retry_async

logger = logging.getLogger("utils.http")

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


def create_session(*, timeout: float = 20, user_agent: str = "MarineReport/1.0") -> aiohttp.ClientSession:
    """
    Create the aiohttp session shared by every source of one collector.

    Args:
        timeout: Total request timeout in seconds
        user_agent: User agent string
    """
    return aiohttp.ClientSession(
        headers={"User-Agent": user_agent},
        timeout=aiohttp.ClientTimeout(total=timeout),
    )


class HttpClient:
    """
    Thin wrapper around an aiohttp session.

    Transport failures are retried, then surfaced as ``UpstreamUnavailable``.
    Non-2xx responses fail immediately.
    """

    def __init__(self, session: aiohttp.ClientSession, *, max_attempts: int = 2):
        self.session = session
        self.max_attempts = max(max_attempts, 1)

    @retry_async(
        max_attempts=lambda self: self.max_attempts,
        exception_types=TRANSPORT_ERRORS,
        logger_name="utils.http",
    )
    async def _get(
        self,
        url: str,
        params: Optional[Mapping[str, str]],
        headers: Optional[Mapping[str, str]],
    ) -> str:
        start_time = time.monotonic()
        async with self.session.get(url, params=params, headers=headers) as response:
            body = await response.text()
            elapsed = time.monotonic() - start_time
            logger.debug(f"GET {response.url} - {response.status} ({elapsed:.2f}s)")
            if response.status < 200 or response.status >= 300:
                raise UpstreamUnavailable(
                    f"HTTP error {response.status}: {url}",
                    status=response.status,
                )
            return body

    async def fetch_text(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Fetch a URL and return the body as text.

        Raises:
            UpstreamUnavailable: On network errors, timeouts or non-2xx status
        """
        try:
            return await self._get(url, params, headers)
        except TRANSPORT_ERRORS as e:
            raise UpstreamUnavailable(f"Request to {url} failed: {e.__class__.__name__}: {e}") from e

    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Fetch a URL and decode the body as JSON.

        Raises:
            UpstreamUnavailable: On network errors, timeouts or non-2xx status
            MalformedPayload: If the body is not valid JSON
        """
        text = await self.fetch_text(url, params=params, headers=headers)
        try:
            return json.loads(text)
        except ValueError as e:
            raise MalformedPayload(f"Invalid JSON from {url}: {e}") from e


def query(params: Dict[str, Any]) -> Dict[str, str]:
    """Stringify query parameters, dropping None values."""
    return {key: str(value) for key, value in params.items() if value is not None}
