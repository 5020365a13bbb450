"""NDBC buoy observation agent for Marine Report."""
from ..data.base_agent import BaseAgent
from ..data.collection_context import CollectionContext
from ..models.buoy_data import StationObservation, parse_station_observation

NDBC_REALTIME_URL = "https://www.ndbc.noaa.gov/data/realtime2"


class BuoyAgent(BaseAgent[StationObservation]):
    """Latest observation from one NDBC station; one instance per station."""

    def __init__(self, station_id: str, label: str, base_url: str = NDBC_REALTIME_URL):
        """
        Initialize the buoy agent.

        Args:
            station_id: NDBC station identifier, e.g. "BZST2"
            label: Report field this station fills, e.g. "gulf"
            base_url: realtime2 directory URL
        """
        super().__init__()
        self.station_id = station_id
        self.label = label
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return f"buoy:{self.label}"

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.station_id}.txt"

    async def fetch(self, ctx: CollectionContext) -> StationObservation:
        self.logger.info(f"Collecting data for NDBC {self.station_id} ({self.label})")
        text = await self.client(ctx).fetch_text(self.url)
        observation = parse_station_observation(text, self.station_id)
        self.logger.debug(f"NDBC {self.station_id}: {observation.to_json_dict()}")
        return observation

    def fallback(self) -> StationObservation:
        return StationObservation.fallback()
