"""Wave forecast models and their persisted representation."""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from pydantic import Field, field_validator

from ..errors import MalformedPayload
from .base import FrozenModel
from .buoy_data import round_half_away

logger = logging.getLogger("models.wave_data")

METERS_TO_FEET = 3.28084


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class WaveForecastPoint(FrozenModel):
    """One forecast hour."""

    timestamp: datetime = Field(..., description="Forecast valid time")
    height_ft: Optional[float] = Field(None, description="Significant wave height in feet")

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class WaveForecastCacheEntry(FrozenModel):
    """A complete forecast series and when it was fetched."""

    fetched_at: datetime = Field(..., description="When the series was fetched")
    points: Tuple[WaveForecastPoint, ...] = Field((), description="Chronological forecast points")

    def to_record(self) -> Dict[str, Any]:
        """
        Serialize to the persisted cache schema.

        Returns:
            ``{"timestamp": epoch-millis, "waves": [{"time": iso, "waveFt": x}]}``
        """
        return {
            "timestamp": int(round(self.fetched_at.timestamp() * 1000)),
            "waves": [
                {"time": point.timestamp.isoformat(), "waveFt": point.height_ft}
                for point in self.points
            ],
        }

    @classmethod
    def from_record(cls, record: Any) -> "WaveForecastCacheEntry":
        """
        Rebuild an entry from the persisted cache schema.

        Raises:
            MalformedPayload: If the record does not match the schema
        """
        if not isinstance(record, dict):
            raise MalformedPayload("Cache record is not an object")
        millis = record.get("timestamp")
        if not isinstance(millis, (int, float)) or isinstance(millis, bool):
            raise MalformedPayload("Cache record has no numeric timestamp")
        fetched_at = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        return cls(fetched_at=fetched_at, points=parse_snapshot_waves(record))


def _height(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        height = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(height) or math.isinf(height) else height


def parse_snapshot_waves(payload: Any) -> Tuple[WaveForecastPoint, ...]:
    """
    Parse ``{"waves": [{"time": ..., "waveFt": ...}]}``.

    Entries without a parseable time are skipped; a missing height is kept
    as a null point.

    Raises:
        MalformedPayload: If there is no ``waves`` list
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("waves"), list):
        raise MalformedPayload("Wave payload has no 'waves' list")

    points = []
    for item in payload["waves"]:
        if not isinstance(item, dict):
            continue
        try:
            timestamp = parse_instant(str(item["time"]))
        except (KeyError, ValueError):
            logger.debug(f"Skipping wave entry without a valid time: {item!r}")
            continue
        points.append(WaveForecastPoint(timestamp=timestamp, height_ft=_height(item.get("waveFt"))))
    return tuple(points)


def parse_stormglass_hours(payload: Any) -> Tuple[WaveForecastPoint, ...]:
    """
    Parse a Stormglass point response, converting ``waveHeight.sg`` to feet.

    Raises:
        MalformedPayload: If there is no ``hours`` list
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("hours"), list):
        raise MalformedPayload("Stormglass payload has no 'hours' list")

    points = []
    for hour in payload["hours"]:
        if not isinstance(hour, dict):
            continue
        try:
            timestamp = parse_instant(str(hour["time"]))
        except (KeyError, ValueError):
            logger.debug(f"Skipping Stormglass hour without a valid time: {hour!r}")
            continue
        wave_height = hour.get("waveHeight")
        meters = _height(wave_height.get("sg")) if isinstance(wave_height, dict) else None
        height_ft = round_half_away(meters * METERS_TO_FEET) if meters is not None else None
        points.append(WaveForecastPoint(timestamp=timestamp, height_ft=height_ft))
    return tuple(points)
