"""Sunrise/sunset agent for Marine Report."""
from ..data.base_agent import BaseAgent
from ..data.collection_context import CollectionContext
from ..models.report import SolarTimes
from ..utils.solar import sunrise_sunset


class SunAgent(BaseAgent[SolarTimes]):
    """Computes today's sunrise and sunset locally; no network access."""

    def __init__(self, latitude: float, longitude: float):
        super().__init__()
        self.latitude = latitude
        self.longitude = longitude

    @property
    def name(self) -> str:
        return "sun"

    async def fetch(self, ctx: CollectionContext) -> SolarTimes:
        today = ctx.now().astimezone(ctx.tz).date()
        return sunrise_sunset(self.latitude, self.longitude, today, ctx.tz)

    def fallback(self) -> SolarTimes:
        return SolarTimes.fallback()
