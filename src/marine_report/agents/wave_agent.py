"""Wave forecast agent and its upstreams for Marine Report."""
from datetime import timedelta
from typing import Tuple

from ..data.base_agent import BaseAgent
from ..data.cache_store import KeyValueStore
from ..data.collection_context import CollectionContext
from ..data.wave_cache import CacheStatus, WaveForecastCache, WaveUpstream, nearest_point
from ..errors import StaleCacheMiss, UpstreamUnavailable
from ..models.report import WaveSummary
from ..models.settings import Settings
from ..models.wave_data import WaveForecastPoint, parse_snapshot_waves, parse_stormglass_hours
from ..utils.http import HttpClient, query


class StormglassWaveUpstream:
    """Stormglass point forecast, ``waveHeight`` from the ``sg`` model."""

    name = "stormglass"

    def __init__(self, http_client: HttpClient, *, url: str, api_key: str, lat: float, lon: float):
        self.http_client = http_client
        self.url = url
        self.api_key = api_key
        self.lat = lat
        self.lon = lon

    async def fetch_points(self) -> Tuple[WaveForecastPoint, ...]:
        if not self.api_key or self.api_key.startswith("your_"):
            raise UpstreamUnavailable("Stormglass API key not configured", source=self.name)
        payload = await self.http_client.fetch_json(
            self.url,
            params=query({"lat": self.lat, "lng": self.lon, "params": "waveHeight", "source": "sg"}),
            headers={"Authorization": self.api_key},
        )
        return parse_stormglass_hours(payload)


class SnapshotWaveUpstream:
    """Pre-fetched forecast published as JSON in the cache schema."""

    name = "snapshot"

    def __init__(self, http_client: HttpClient, *, url: str):
        self.http_client = http_client
        self.url = url

    async def fetch_points(self) -> Tuple[WaveForecastPoint, ...]:
        payload = await self.http_client.fetch_json(self.url, headers={"Cache-Control": "no-cache"})
        return parse_snapshot_waves(payload)


def build_upstream(settings: Settings, http_client: HttpClient) -> WaveUpstream:
    """Wave upstream selected by ``[WAVES] SOURCE``."""
    if settings.waves.source == "snapshot":
        return SnapshotWaveUpstream(http_client, url=settings.waves.snapshot_url)
    return StormglassWaveUpstream(
        http_client,
        url=settings.waves.stormglass_url,
        api_key=settings.api.stormglass_key,
        lat=settings.location.waves_lat,
        lon=settings.location.waves_lon,
    )


def build_wave_cache(settings: Settings, store: KeyValueStore, upstream: WaveUpstream) -> WaveForecastCache:
    return WaveForecastCache(
        store,
        upstream,
        ttl=timedelta(hours=settings.waves.cache_ttl_hours),
        refresh_hours=settings.waves.refresh_hours,
        tz=settings.general.tz,
        fetch_timeout=settings.general.refresh_timeout,
    )


class WaveAgent(BaseAgent[WaveSummary]):
    """Forecast wave height nearest to now, served through the wave cache."""

    @property
    def name(self) -> str:
        return "waves"

    async def fetch(self, ctx: CollectionContext) -> WaveSummary:
        cache = build_wave_cache(ctx.settings, ctx.store, build_upstream(ctx.settings, self.client(ctx)))
        now = ctx.now()
        series = await cache.get_series(now)
        if series.status is CacheStatus.MISS:
            raise StaleCacheMiss("No cached wave series and refresh failed", source=self.name)

        point = nearest_point(series.points, now)
        if point is None:
            self.logger.info(f"No wave heights in {series.status.value} series")
            return WaveSummary()
        self.logger.debug(f"Nearest wave point {point.timestamp.isoformat()} ({series.status.value})")
        return WaveSummary(height_ft=point.height_ft)

    def fallback(self) -> WaveSummary:
        return WaveSummary.fallback()
