"""Report models for Marine Report."""
from typing import Optional

from pydantic import Field

from .base import FrozenModel
from .buoy_data import StationObservation


class TideEvent(FrozenModel):
    """A single high or low water event."""

    time: str = Field(..., description="Local time as HH:MM")
    height_ft: float = Field(..., description="Height above MLLW in feet, one decimal")


class TidePrediction(FrozenModel):
    """First high and first low tide of the day."""

    high: Optional[TideEvent] = None
    low: Optional[TideEvent] = None

    @classmethod
    def fallback(cls) -> "TidePrediction":
        return cls()


class SolarTimes(FrozenModel):
    """Local sunrise and sunset, None when the sun does not rise or set."""

    sunrise: Optional[str] = Field(None, description="Local time as HH:MM")
    sunset: Optional[str] = Field(None, description="Local time as HH:MM")

    @classmethod
    def fallback(cls) -> "SolarTimes":
        return cls()


class WaveSummary(FrozenModel):
    """Forecast wave height nearest to the report time."""

    height_ft: Optional[float] = None

    @classmethod
    def fallback(cls) -> "WaveSummary":
        return cls()


class AggregatedReport(FrozenModel):
    """Everything the dashboard shows, built once per collection cycle."""

    gulf: StationObservation = Field(default_factory=StationObservation.fallback)
    bay: StationObservation = Field(default_factory=StationObservation.fallback)
    waves: WaveSummary = Field(default_factory=WaveSummary.fallback)
    tides: TidePrediction = Field(default_factory=TidePrediction.fallback)
    sun: SolarTimes = Field(default_factory=SolarTimes.fallback)
    degraded: bool = False

    @classmethod
    def fallback(cls) -> "AggregatedReport":
        """Report with every source at its fallback value."""
        return cls(degraded=True)
