"""Report collection for Marine Report."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

from .agents.buoy_agent import BuoyAgent
from .agents.sun_agent import SunAgent
from .agents.tide_agent import TideAgent
from .agents.wave_agent import WaveAgent
from .data.base_agent import BaseAgent
from .data.cache_store import KeyValueStore
from .data.collection_context import Clock, CollectionContext, utcnow
from .errors import SourceError
from .models.report import AggregatedReport
from .models.settings import Settings

logger = logging.getLogger("collector")

T = TypeVar("T")

REPORT_FIELDS = ("gulf", "bay", "waves", "tides", "sun")


@dataclass(frozen=True)
class SourceOutcome(Generic[T]):
    """Result of one source: its value, or its fallback if it failed."""

    field: str
    value: T
    failed: bool = False
    error: Optional[BaseException] = None


class ReportCollector:
    """
    Builds an AggregatedReport from all sources.

    Every source runs concurrently inside its own failure boundary, so a
    failing or slow source only replaces its own part of the report with
    the fallback value and sets ``degraded``.
    """

    def __init__(self, settings: Settings, agents: Optional[Dict[str, BaseAgent[Any]]] = None):
        """
        Initialize the report collector.

        Args:
            settings: Application settings
            agents: Agent per report field; defaults to the configured sources
        """
        self.settings = settings
        self.agents = agents if agents is not None else self._create_agents()
        missing = [field for field in REPORT_FIELDS if field not in self.agents]
        if missing:
            raise ValueError(f"No agent configured for report fields: {', '.join(missing)}")

    def _create_agents(self) -> Dict[str, BaseAgent[Any]]:
        stations = self.settings.stations
        location = self.settings.location
        return {
            "gulf": BuoyAgent(stations.gulf_buoy, "gulf"),
            "bay": BuoyAgent(stations.bay_buoy, "bay"),
            "waves": WaveAgent(),
            "tides": TideAgent(stations.tide_station),
            "sun": SunAgent(location.sun_lat, location.sun_lon),
        }

    async def _run_isolated(self, field: str, agent: BaseAgent[T], ctx: CollectionContext) -> SourceOutcome[T]:
        deadline = self.settings.general.source_timeout
        try:
            value = await asyncio.wait_for(agent.fetch(ctx), timeout=deadline)
        except asyncio.TimeoutError as e:
            logger.warning(f"Source {agent.name} timed out after {deadline}s, using fallback")
            return SourceOutcome(field, agent.fallback(), failed=True, error=e)
        except SourceError as e:
            logger.warning(f"Source {agent.name} failed ({e.kind}): {e}; using fallback")
            return SourceOutcome(field, agent.fallback(), failed=True, error=e)
        except Exception as e:
            logger.exception(f"Source {agent.name} raised unexpectedly, using fallback")
            return SourceOutcome(field, agent.fallback(), failed=True, error=e)
        return SourceOutcome(field, value)

    async def collect(self, ctx: CollectionContext) -> AggregatedReport:
        """
        Collect every source concurrently and assemble the report.

        Args:
            ctx: Entered collection context

        Returns:
            The report; never raises for source failures
        """
        logger.info("Starting report collection")

        outcomes = await asyncio.gather(
            *(self._run_isolated(field, self.agents[field], ctx) for field in REPORT_FIELDS)
        )

        values = {outcome.field: outcome.value for outcome in outcomes}
        failed = [outcome.field for outcome in outcomes if outcome.failed]
        report = AggregatedReport(**values, degraded=bool(failed))

        if failed:
            logger.warning(f"Report degraded, fallbacks used for: {', '.join(failed)}")
        else:
            logger.info("Report collection complete")
        return report


async def collect_report(
    settings: Settings,
    *,
    store: Optional[KeyValueStore] = None,
    clock: Clock = utcnow,
) -> AggregatedReport:
    """
    Collect one report with a fresh HTTP session.

    Args:
        settings: Application settings
        store: Cache store; defaults to JSON files under the cache dir
        clock: Returns the current timezone-aware time

    Returns:
        The aggregated report
    """
    async with CollectionContext(settings, store=store, clock=clock) as ctx:
        return await ReportCollector(settings).collect(ctx)
