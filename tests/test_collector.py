"""Tests for concurrent report collection and failure isolation."""
import asyncio
import time
from datetime import timedelta

import pytest

from marine_report.agents.buoy_agent import NDBC_REALTIME_URL, BuoyAgent
from marine_report.agents.tide_agent import COOPS_DATAGETTER_URL
from marine_report.collector import REPORT_FIELDS, ReportCollector, collect_report
from marine_report.data.base_agent import BaseAgent
from marine_report.data.cache_store import MemoryStore
from marine_report.data.collection_context import CollectionContext
from marine_report.data.wave_cache import CACHE_KEY
from marine_report.errors import UpstreamUnavailable
from marine_report.models.buoy_data import StationObservation
from marine_report.models.report import SolarTimes, TideEvent, TidePrediction, WaveSummary
from marine_report.models.wave_data import WaveForecastCacheEntry, WaveForecastPoint

from conftest import NOW, REALTIME2_TEXT, STORMGLASS_PAYLOAD, TIDE_PAYLOAD, FakeHttpClient

OBSERVATION = StationObservation(air_temp_f=80.0, water_temp_f=84.9, wind_speed_kt=12.1, gust_speed_kt=15.0, wind_direction="SE")
TIDES = TidePrediction(high=TideEvent(time="05:45", height_ft=1.5), low=TideEvent(time="22:12", height_ft=-0.1))
SUN = SolarTimes(sunrise="06:37", sunset="20:23")


class StubAgent(BaseAgent):
    """Returns a value, raises, or sleeps, as configured."""

    def __init__(self, name, value, fallback_value, error=None, delay=0.0):
        super().__init__()
        self._name = name
        self.value = value
        self.fallback_value = fallback_value
        self.error = error
        self.delay = delay
        self.calls = 0

    @property
    def name(self):
        return self._name

    async def fetch(self, ctx):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value

    def fallback(self):
        return self.fallback_value


def stub_agents(**overrides):
    agents = {
        "gulf": StubAgent("buoy:gulf", OBSERVATION, StationObservation()),
        "bay": StubAgent("buoy:bay", OBSERVATION, StationObservation()),
        "waves": StubAgent("waves", WaveSummary(height_ft=3.6), WaveSummary()),
        "tides": StubAgent("tides", TIDES, TidePrediction()),
        "sun": StubAgent("sun", SUN, SolarTimes()),
    }
    for field, kwargs in overrides.items():
        agent = agents[field]
        for key, value in kwargs.items():
            setattr(agent, key, value)
    return agents


def context(settings, clock, **kwargs):
    kwargs.setdefault("http_client", FakeHttpClient())
    kwargs.setdefault("store", MemoryStore())
    return CollectionContext(settings, clock=clock, **kwargs)


@pytest.mark.asyncio
async def test_all_sources_succeed(settings, clock):
    collector = ReportCollector(settings, agents=stub_agents())

    report = await collector.collect(context(settings, clock))

    assert report.degraded is False
    assert report.gulf == OBSERVATION
    assert report.waves.height_ft == 3.6
    assert report.tides == TIDES
    assert report.sun == SUN


@pytest.mark.asyncio
async def test_failing_source_only_replaces_its_own_field(settings, clock):
    agents = stub_agents(tides={"error": UpstreamUnavailable("down", status=503)})

    report = await ReportCollector(settings, agents=agents).collect(context(settings, clock))

    assert report.degraded is True
    assert report.tides == TidePrediction(high=None, low=None)
    assert report.gulf == OBSERVATION
    assert report.bay == OBSERVATION
    assert report.waves.height_ft == 3.6
    assert report.sun == SUN


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained(settings, clock):
    agents = stub_agents(gulf={"error": RuntimeError("boom")})

    report = await ReportCollector(settings, agents=agents).collect(context(settings, clock))

    assert report.degraded is True
    assert report.gulf == StationObservation()
    assert report.gulf.wind_direction == "--"
    assert report.bay == OBSERVATION


@pytest.mark.asyncio
async def test_slow_source_hits_deadline(settings, clock):
    settings.general.source_timeout = 0.05
    agents = stub_agents(waves={"delay": 10.0})

    start = time.monotonic()
    report = await ReportCollector(settings, agents=agents).collect(context(settings, clock))

    assert time.monotonic() - start < 5.0
    assert report.degraded is True
    assert report.waves == WaveSummary(height_ft=None)
    assert report.tides == TIDES


@pytest.mark.asyncio
async def test_sources_run_concurrently(settings, clock):
    gulf_started = asyncio.Event()
    bay_started = asyncio.Event()

    class WaitingAgent(StubAgent):
        def __init__(self, name, mine, other):
            super().__init__(name, OBSERVATION, StationObservation())
            self.mine = mine
            self.other = other

        async def fetch(self, ctx):
            self.mine.set()
            await self.other.wait()
            return self.value

    # each buoy waits for the other to start, so sequential execution would time out
    agents = stub_agents()
    agents["gulf"] = WaitingAgent("buoy:gulf", gulf_started, bay_started)
    agents["bay"] = WaitingAgent("buoy:bay", bay_started, gulf_started)

    report = await ReportCollector(settings, agents=agents).collect(context(settings, clock))

    assert report.degraded is False
    assert report.gulf == OBSERVATION
    assert report.bay == OBSERVATION


@pytest.mark.asyncio
async def test_every_source_failing_still_returns_a_report(settings, clock):
    agents = stub_agents(**{field: {"error": UpstreamUnavailable("down")} for field in REPORT_FIELDS})

    report = await ReportCollector(settings, agents=agents).collect(context(settings, clock))

    assert report.degraded is True
    assert report.to_json_dict() == {
        "gulf": {"airTempF": None, "waterTempF": None, "windSpeedKt": None, "gustSpeedKt": None, "windDirection": "--"},
        "bay": {"airTempF": None, "waterTempF": None, "windSpeedKt": None, "gustSpeedKt": None, "windDirection": "--"},
        "waves": {"heightFt": None},
        "tides": {"high": None, "low": None},
        "sun": {"sunrise": None, "sunset": None},
        "degraded": True,
    }


def test_missing_agent_is_rejected(settings):
    agents = stub_agents()
    del agents["sun"]

    with pytest.raises(ValueError, match="sun"):
        ReportCollector(settings, agents=agents)


def test_default_agents_follow_settings(settings):
    settings.stations.gulf_buoy = "42020"

    collector = ReportCollector(settings)

    assert isinstance(collector.agents["gulf"], BuoyAgent)
    assert collector.agents["gulf"].url == f"{NDBC_REALTIME_URL}/42020.txt"
    assert collector.agents["bay"].station_id == "PCGT2"


def live_routes(settings):
    return {
        f"{NDBC_REALTIME_URL}/BZST2.txt": REALTIME2_TEXT,
        f"{NDBC_REALTIME_URL}/PCGT2.txt": REALTIME2_TEXT,
        COOPS_DATAGETTER_URL: TIDE_PAYLOAD,
        settings.waves.stormglass_url: STORMGLASS_PAYLOAD,
    }


@pytest.mark.asyncio
async def test_end_to_end_with_default_agents(settings, clock):
    http_client = FakeHttpClient(live_routes(settings))
    store = MemoryStore()

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=http_client, store=store))

    assert report.degraded is False
    assert report.gulf.water_temp_f == 84.9
    assert report.bay.wind_direction == "SE"
    assert report.waves.height_ft == 3.6
    assert report.tides.high == TideEvent(time="05:45", height_ft=1.5)
    assert report.sun.sunrise is not None
    assert len(http_client.calls) == 4
    stormglass_call = next(call for call in http_client.calls if call["url"] == settings.waves.stormglass_url)
    assert stormglass_call["headers"] == {"Authorization": "test-key"}
    assert stormglass_call["params"]["params"] == "waveHeight"
    assert (await store.get(CACHE_KEY))["timestamp"] == 1718992800000


@pytest.mark.asyncio
async def test_cached_waves_skip_the_upstream(settings, clock):
    http_client = FakeHttpClient(live_routes(settings))
    store = MemoryStore()
    ctx = context(settings, clock, http_client=http_client, store=store)
    collector = ReportCollector(settings)

    await collector.collect(ctx)
    second = await collector.collect(ctx)

    assert second.waves.height_ft == 3.6
    assert http_client.urls().count(settings.waves.stormglass_url) == 1


@pytest.mark.asyncio
async def test_wave_outage_without_cache_degrades_report(settings, clock):
    routes = live_routes(settings)
    del routes[settings.waves.stormglass_url]

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=FakeHttpClient(routes)))

    assert report.degraded is True
    assert report.waves.height_ft is None
    assert report.gulf.water_temp_f == 84.9


@pytest.mark.asyncio
async def test_wave_outage_with_old_cache_serves_stale_series(settings, clock):
    store = MemoryStore()
    old = WaveForecastCacheEntry(
        fetched_at=NOW - timedelta(hours=6),
        points=(WaveForecastPoint(timestamp=NOW, height_ft=2.0),),
    )
    await store.set(CACHE_KEY, old.to_record())
    routes = live_routes(settings)
    routes[settings.waves.stormglass_url] = UpstreamUnavailable("rate limited", status=429)

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=FakeHttpClient(routes), store=store))

    assert report.waves.height_ft == 2.0
    assert report.degraded is False


@pytest.mark.asyncio
async def test_unconfigured_stormglass_key_skips_request(settings, clock):
    settings.api.stormglass_key = "your_stormglass_key"
    http_client = FakeHttpClient(live_routes(settings))

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=http_client))

    assert report.degraded is True
    assert settings.waves.stormglass_url not in http_client.urls()


@pytest.mark.asyncio
async def test_snapshot_wave_source(settings, clock):
    settings.waves.source = "snapshot"
    routes = live_routes(settings)
    routes[settings.waves.snapshot_url] = {"waves": [{"time": "2024-06-21T18:00:00Z", "waveFt": 2.5}]}

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=FakeHttpClient(routes)))

    assert report.waves.height_ft == 2.5
    assert report.degraded is False


@pytest.mark.asyncio
async def test_collect_report_opens_its_own_session(settings, clock, monkeypatch):
    seen = {}
    original_collect = ReportCollector.collect

    async def fake_collect(self, ctx):
        seen["client"] = ctx.http_client
        return await original_collect(ReportCollector(settings, agents=stub_agents()), ctx)

    monkeypatch.setattr(ReportCollector, "collect", fake_collect)

    report = await collect_report(settings, store=MemoryStore(), clock=clock)

    assert report.degraded is False
    assert seen["client"] is not None


@pytest.mark.asyncio
async def test_tide_error_payload_degrades_report(settings, clock):
    routes = live_routes(settings)
    routes[COOPS_DATAGETTER_URL] = {"error": {"message": "No Predictions data was found."}}

    report = await ReportCollector(settings).collect(context(settings, clock, http_client=FakeHttpClient(routes)))

    assert report.degraded is True
    assert report.tides == TidePrediction()
    assert report.gulf.water_temp_f == 84.9


class SlowStormglassClient(FakeHttpClient):
    def __init__(self, routes, slow_url):
        super().__init__(routes)
        self.slow_url = slow_url

    async def fetch_text(self, url, *, params=None, headers=None):
        if url == self.slow_url:
            self.calls.append({"url": url, "params": params, "headers": headers})
            await asyncio.sleep(5.0)
        return await super().fetch_text(url, params=params, headers=headers)


@pytest.mark.asyncio
async def test_hanging_wave_upstream_serves_stale_series(settings, clock):
    settings.general.source_timeout = 0.5
    store = MemoryStore()
    old = WaveForecastCacheEntry(
        fetched_at=NOW - timedelta(hours=6),
        points=(WaveForecastPoint(timestamp=NOW, height_ft=2.0),),
    )
    await store.set(CACHE_KEY, old.to_record())
    http_client = SlowStormglassClient(live_routes(settings), settings.waves.stormglass_url)

    start = time.monotonic()
    report = await ReportCollector(settings).collect(context(settings, clock, http_client=http_client, store=store))

    assert time.monotonic() - start < 2.0
    assert report.waves.height_ft == 2.0
    assert report.degraded is False
    assert settings.waves.stormglass_url in http_client.urls()


def test_refresh_and_request_timeouts_stay_inside_source_timeout(settings):
    settings.general.source_timeout = 15.0
    settings.general.timeout = 20

    assert settings.general.refresh_timeout < settings.general.source_timeout
    assert settings.general.request_timeout == settings.general.refresh_timeout

    settings.general.timeout = 5
    assert settings.general.request_timeout == 5.0


class CancellableAgent(StubAgent):
    def __init__(self, name, fallback_value):
        super().__init__(name, fallback_value, fallback_value)
        self.started = asyncio.Event()
        self.cancelled = False

    async def fetch(self, ctx):
        self.calls += 1
        self.started.set()
        try:
            await asyncio.sleep(10.0)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.value


@pytest.mark.asyncio
async def test_cancelling_collection_cancels_every_fetch(settings, clock):
    agents = {
        "gulf": CancellableAgent("buoy:gulf", StationObservation()),
        "bay": CancellableAgent("buoy:bay", StationObservation()),
        "waves": CancellableAgent("waves", WaveSummary()),
        "tides": CancellableAgent("tides", TidePrediction()),
        "sun": CancellableAgent("sun", SolarTimes()),
    }
    task = asyncio.create_task(ReportCollector(settings, agents=agents).collect(context(settings, clock)))
    await asyncio.wait_for(asyncio.gather(*(agent.started.wait() for agent in agents.values())), timeout=2.0)

    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert all(agent.cancelled for agent in agents.values())
