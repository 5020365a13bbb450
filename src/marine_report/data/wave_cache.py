"""Cached wave forecast series with TTL and wall-clock refresh boundaries."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional, Protocol, Sequence, Tuple

from pydantic import ValidationError

from ..errors import MalformedPayload, SourceError, UpstreamUnavailable
from ..models.wave_data import WaveForecastCacheEntry, WaveForecastPoint
from .cache_store import KeyValueStore

logger = logging.getLogger("data.wave_cache")

CACHE_KEY = "waves.json"


class CacheStatus(str, Enum):
    """How a series was obtained."""

    FRESH = "fresh"          # cached entry still valid
    REFRESHED = "refreshed"  # fetched from the upstream just now
    STALE = "stale"          # refresh failed, previous entry served
    MISS = "miss"            # refresh failed and nothing was cached


@dataclass(frozen=True)
class WaveSeries:
    points: Tuple[WaveForecastPoint, ...]
    status: CacheStatus
    fetched_at: Optional[datetime] = None


class WaveUpstream(Protocol):
    """Source of a complete, chronologically ordered forecast series."""

    name: str

    async def fetch_points(self) -> Tuple[WaveForecastPoint, ...]:
        ...


def crossed_refresh_boundary(
    since: datetime,
    now: datetime,
    refresh_hours: Sequence[int],
    tz: tzinfo,
) -> bool:
    """
    Whether a local refresh hour falls in ``(since, now]``.

    Args:
        since: When the cache entry was written
        now: Current time
        refresh_hours: Local hours of day (0-23) that force a refresh
        tz: Timezone the hours are expressed in
    """
    if not refresh_hours or now <= since:
        return False

    local_since = since.astimezone(tz)
    local_now = now.astimezone(tz)
    if (local_now.date() - local_since.date()).days > 1:
        return True

    day = local_since.date()
    while day <= local_now.date():
        for hour in refresh_hours:
            boundary = datetime(day.year, day.month, day.day, hour, tzinfo=tz)
            if since < boundary <= now:
                return True
        day += timedelta(days=1)
    return False


def nearest_point(
    points: Sequence[WaveForecastPoint],
    now: datetime,
) -> Optional[WaveForecastPoint]:
    """
    The point closest in time to ``now``.

    Points without a height are skipped; on equal distance the earlier
    point in the sequence wins.
    """
    best = None
    best_distance = None
    for point in points:
        if point.height_ft is None:
            continue
        distance = abs(point.timestamp - now)
        if best_distance is None or distance < best_distance:
            best = point
            best_distance = distance
    return best


class WaveForecastCache:
    """
    Single-slot cache of the wave forecast series.

    The entry is served while it is younger than ``ttl`` and no refresh
    boundary has passed since it was fetched. Otherwise a new series is
    fetched and written in one ``set``; if that fails, the previous series
    (or an empty one) is served instead.
    """

    def __init__(
        self,
        store: KeyValueStore,
        upstream: WaveUpstream,
        *,
        ttl: timedelta,
        refresh_hours: Sequence[int],
        tz: tzinfo,
        key: str = CACHE_KEY,
        fetch_timeout: Optional[float] = None,
    ):
        self.store = store
        self.upstream = upstream
        self.ttl = ttl
        self.refresh_hours = tuple(refresh_hours)
        self.tz = tz
        self.key = key
        self.fetch_timeout = fetch_timeout

    async def load_entry(self) -> Optional[WaveForecastCacheEntry]:
        """Read the cached entry; an unreadable record counts as absent."""
        record = await self.store.get(self.key)
        if record is None:
            return None
        try:
            return WaveForecastCacheEntry.from_record(record)
        except (MalformedPayload, ValidationError) as e:
            logger.warning(f"Discarding malformed wave cache entry: {e}")
            return None

    def is_fresh(self, entry: WaveForecastCacheEntry, now: datetime) -> bool:
        age = now - entry.fetched_at
        if age < timedelta(0) or age >= self.ttl:
            return False
        return not crossed_refresh_boundary(entry.fetched_at, now, self.refresh_hours, self.tz)

    async def get_series(self, now: datetime) -> WaveSeries:
        """
        Return the forecast series valid at ``now``, refreshing if stale.

        Args:
            now: Current time (timezone-aware)

        Returns:
            WaveSeries with the points and how they were obtained
        """
        cached = await self.load_entry()
        if cached is not None and self.is_fresh(cached, now):
            logger.debug(f"Serving cached wave series from {cached.fetched_at.isoformat()}")
            return WaveSeries(cached.points, CacheStatus.FRESH, cached.fetched_at)

        try:
            points = await asyncio.wait_for(self.upstream.fetch_points(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            error = UpstreamUnavailable(
                f"Refresh timed out after {self.fetch_timeout}s",
                source=self.upstream.name,
            )
            return self._fallback(cached, error)
        except SourceError as e:
            return self._fallback(cached, e)

        entry = WaveForecastCacheEntry(fetched_at=now, points=points)
        try:
            await self.store.set(self.key, entry.to_record())
        except OSError as e:
            logger.warning(f"Could not persist wave series: {e}")

        logger.info(f"Refreshed wave series from {self.upstream.name} ({len(points)} points)")
        return WaveSeries(entry.points, CacheStatus.REFRESHED, entry.fetched_at)

    def _fallback(self, cached: Optional[WaveForecastCacheEntry], error: SourceError) -> WaveSeries:
        if cached is not None:
            logger.warning(
                f"Wave refresh from {self.upstream.name} failed ({error.kind}: {error}), "
                f"serving series from {cached.fetched_at.isoformat()}"
            )
            return WaveSeries(cached.points, CacheStatus.STALE, cached.fetched_at)
        logger.warning(f"Wave refresh from {self.upstream.name} failed ({error.kind}: {error}), no cached series")
        return WaveSeries((), CacheStatus.MISS)

    async def nearest_height(self, now: datetime) -> Optional[float]:
        """Wave height in feet of the point nearest ``now``, or None."""
        series = await self.get_series(now)
        point = nearest_point(series.points, now)
        return point.height_ft if point is not None else None
