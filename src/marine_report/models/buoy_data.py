"""Buoy observation model and NDBC realtime2 parser."""
import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from ..errors import MalformedPayload, MissingField
from .base import FrozenModel

logger = logging.getLogger("models.buoy_data")

# NDBC marks a missing reading with this token
MISSING_TOKEN = "MM"

NO_DIRECTION = "--"

CARDINAL_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

MPS_TO_KNOTS = 1.94384


class BuoyField(str, Enum):
    """Realtime2 columns used by the report, keyed by header name."""

    WIND_DIRECTION = "WDIR"
    WIND_SPEED = "WSPD"
    GUST_SPEED = "GST"
    AIR_TEMPERATURE = "ATMP"
    WATER_TEMPERATURE = "WTMP"


class StationObservation(FrozenModel):
    """Latest usable readings from one buoy station."""

    air_temp_f: Optional[float] = Field(None, description="Air temperature in Fahrenheit")
    water_temp_f: Optional[float] = Field(None, description="Water temperature in Fahrenheit")
    wind_speed_kt: Optional[float] = Field(None, description="Wind speed in knots")
    gust_speed_kt: Optional[float] = Field(None, description="Wind gust in knots")
    wind_direction: str = Field(NO_DIRECTION, description="16-point compass direction or '--'")

    @field_validator("wind_direction")
    @classmethod
    def validate_direction(cls, v: str) -> str:
        if v != NO_DIRECTION and v not in CARDINAL_POINTS:
            raise ValueError(f"Not a compass point: {v!r}")
        return v

    @classmethod
    def fallback(cls) -> "StationObservation":
        return cls()


def round_half_away(value: float, places: int = 1) -> float:
    """Round to ``places`` decimals, halves away from zero (2.25 -> 2.3, -2.25 -> -2.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def mps_to_knots(mps: float) -> float:
    return mps * MPS_TO_KNOTS


def deg_to_cardinal(degrees: Optional[float]) -> str:
    """
    Convert a bearing in degrees to a 16-point compass direction.

    Exact sector boundaries round half to even on the sector index, so
    11.25 and 348.75 both resolve to "N".

    Args:
        degrees: Bearing, any real value; None for no reading

    Returns:
        Compass point, or "--" when there is no reading
    """
    if degrees is None or math.isnan(degrees) or math.isinf(degrees):
        return NO_DIRECTION
    return CARDINAL_POINTS[round((degrees % 360) / 22.5) % 16]


def _numeric(token: str) -> float:
    """Parse one data token, rejecting the missing-data sentinel."""
    if token == MISSING_TOKEN:
        raise MissingField(f"Sentinel value {token!r}")
    try:
        value = float(token)
    except ValueError:
        raise MissingField(f"Non-numeric value {token!r}") from None
    if math.isnan(value) or math.isinf(value):
        raise MissingField(f"Non-finite value {token!r}")
    return value


def _resolve_columns(lines: List[str]) -> Dict[BuoyField, int]:
    """Map each recognized field to its column using the first header line that names one."""
    for line in lines:
        if not line.startswith("#"):
            continue
        names = line.lstrip("#").split()
        columns = {field: names.index(field.value) for field in BuoyField if field.value in names}
        if columns:
            return columns
    raise MalformedPayload("No header line naming a recognized buoy field")


def _first_valid(rows: List[List[str]], column: Optional[int]) -> Optional[float]:
    """Scan rows newest first and return the first usable value in ``column``."""
    if column is None:
        return None
    for row in rows:
        if column >= len(row):
            continue
        try:
            return _numeric(row[column])
        except MissingField:
            continue
    return None


def parse_station_observation(data: str, station_id: Optional[str] = None) -> StationObservation:
    """
    Parse NDBC realtime2 standard meteorological text.

    Columns are located by header name, so their order in the feed does not
    matter. Each field takes the value from the newest row that has one.

    Args:
        data: Raw realtime2 text
        station_id: Station identifier, used for error messages

    Returns:
        Parsed StationObservation

    Raises:
        MalformedPayload: Empty payload, no header, or no usable rows
    """
    if not data or not data.strip():
        raise MalformedPayload("Empty buoy payload", source=station_id)

    lines = [line.strip() for line in data.splitlines() if line.strip()]
    try:
        columns = _resolve_columns(lines)
    except MalformedPayload as e:
        raise MalformedPayload(str(e), source=station_id) from None

    rows = [line.split() for line in lines if not line.startswith("#")]
    if not rows:
        raise MalformedPayload("Buoy payload has no data rows", source=station_id)

    values = {field: _first_valid(rows, columns.get(field)) for field in BuoyField}
    if all(v is None for v in values.values()):
        raise MalformedPayload("Buoy payload has no usable rows", source=station_id)

    air_c = values[BuoyField.AIR_TEMPERATURE]
    water_c = values[BuoyField.WATER_TEMPERATURE]
    wind_mps = values[BuoyField.WIND_SPEED]
    gust_mps = values[BuoyField.GUST_SPEED]

    observation = StationObservation(
        air_temp_f=round_half_away(celsius_to_fahrenheit(air_c)) if air_c is not None else None,
        water_temp_f=round_half_away(celsius_to_fahrenheit(water_c)) if water_c is not None else None,
        wind_speed_kt=round_half_away(mps_to_knots(wind_mps)) if wind_mps is not None else None,
        gust_speed_kt=round_half_away(mps_to_knots(gust_mps)) if gust_mps is not None else None,
        wind_direction=deg_to_cardinal(values[BuoyField.WIND_DIRECTION]),
    )

    logger.debug(f"Parsed observation for {station_id or 'buoy'} from {len(rows)} rows")
    return observation
