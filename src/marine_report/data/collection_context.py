"""Context shared by the sources of one report collection."""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import aiohttp

from ..models.settings import Settings
from ..utils.http import HttpClient, create_session
from .cache_store import JsonFileStore, KeyValueStore

logger = logging.getLogger("data.collection_context")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CollectionContext:
    """
    Resources for collecting reports: settings, HTTP client, cache store and clock.

    Used as an async context manager when it owns the HTTP session; a caller
    that already has a client (tests, the web app) can pass it in.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[HttpClient] = None,
        store: Optional[KeyValueStore] = None,
        clock: Clock = utcnow,
    ):
        """
        Initialize the collection context.

        Args:
            settings: Application settings
            http_client: HTTP client to use instead of creating a session
            store: Cache store; defaults to JSON files under the cache dir
            clock: Returns the current timezone-aware time
        """
        self.settings = settings
        self.http_client = http_client
        self.store: KeyValueStore = store if store is not None else JsonFileStore(settings.general.cache_dir)
        self.clock = clock
        self.tz = settings.general.tz
        self._session: Optional[aiohttp.ClientSession] = None

    def now(self) -> datetime:
        return self.clock()

    async def __aenter__(self) -> "CollectionContext":
        if self.http_client is None:
            self._session = create_session(
                timeout=self.settings.general.request_timeout,
                user_agent=self.settings.general.user_agent,
            )
            self.http_client = HttpClient(self._session, max_attempts=self.settings.general.max_retries)
            logger.debug("HTTP session opened")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            self.http_client = None
            logger.debug("HTTP session closed")
