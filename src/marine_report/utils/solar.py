"""Sunrise and sunset computation.

Uses the simplified solar position method from the Almanac for Computers
(zenith 90.833 degrees for refraction and the solar disk). Needs no network
access and is accurate to a few minutes at low and mid latitudes.
"""
import logging
import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple

from ..models.report import SolarTimes

logger = logging.getLogger("utils.solar")

ZENITH_DEGREES = 90.833


def _normalize_degrees(value: float) -> float:
    return value % 360.0


def _sun_hour_angle_terms(latitude: float, longitude: float, day: date) -> Tuple[Optional[float], float, float, float]:
    """
    Solar terms shared by sunrise and sunset.

    Returns:
        ``(cos_h, right_ascension_hours, t, lng_hour)``; ``cos_h`` is None when
        the sun never crosses the horizon on that date.
    """
    n = day.timetuple().tm_yday
    lng_hour = longitude / 15.0
    t = n + (6.0 - lng_hour) / 24.0

    mean_anomaly = 0.9856 * t - 3.289
    m_rad = math.radians(mean_anomaly)

    true_longitude = _normalize_degrees(
        mean_anomaly + 1.916 * math.sin(m_rad) + 0.020 * math.sin(2 * m_rad) + 282.634
    )
    l_rad = math.radians(true_longitude)

    right_ascension = _normalize_degrees(math.degrees(math.atan(0.91764 * math.tan(l_rad))))
    l_quadrant = math.floor(true_longitude / 90.0) * 90.0
    ra_quadrant = math.floor(right_ascension / 90.0) * 90.0
    right_ascension_hours = (right_ascension + l_quadrant - ra_quadrant) / 15.0

    sin_dec = 0.39782 * math.sin(l_rad)
    cos_dec = math.cos(math.asin(sin_dec))

    lat_rad = math.radians(latitude)
    denominator = cos_dec * math.cos(lat_rad)
    if denominator == 0:
        return None, right_ascension_hours, t, lng_hour

    cos_h = (math.cos(math.radians(ZENITH_DEGREES)) - sin_dec * math.sin(lat_rad)) / denominator
    if cos_h > 1.0 or cos_h < -1.0:
        return None, right_ascension_hours, t, lng_hour
    return cos_h, right_ascension_hours, t, lng_hour


def _to_local_clock(ut_hours: float, day: date, tz: tzinfo) -> str:
    """
    Format UT decimal hours on ``day`` as a local ``HH:MM`` clock time.

    The instant is truncated to whole minutes, then moved by a day when it
    falls on a neighbouring local date, so the offset used is the one in
    effect on ``day`` itself.
    """
    midnight_utc = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    moment = midnight_utc + timedelta(minutes=math.floor(ut_hours * 60.0))
    local_date = moment.astimezone(tz).date()
    if local_date > day:
        moment -= timedelta(days=1)
    elif local_date < day:
        moment += timedelta(days=1)
    return moment.astimezone(tz).strftime("%H:%M")


def sunrise_sunset(latitude: float, longitude: float, day: date, tz: tzinfo = timezone.utc) -> SolarTimes:
    """
    Compute local sunrise and sunset.

    Args:
        latitude: Observer latitude in degrees, north positive
        longitude: Observer longitude in degrees, east positive
        day: Calendar date
        tz: Timezone for the returned clock times

    Returns:
        SolarTimes with HH:MM strings, both None during polar day or night
    """
    cos_h, ra_hours, t, lng_hour = _sun_hour_angle_terms(latitude, longitude, day)
    if cos_h is None:
        logger.debug(f"No sunrise/sunset at lat={latitude} on {day.isoformat()}")
        return SolarTimes()

    h_degrees = math.degrees(math.acos(cos_h))
    rise_hour_angle = (360.0 - h_degrees) / 15.0
    set_hour_angle = h_degrees / 15.0

    rise_local_mean = rise_hour_angle + ra_hours - 0.06571 * t - 6.622
    set_local_mean = set_hour_angle + ra_hours - 0.06571 * t - 6.622

    return SolarTimes(
        sunrise=_to_local_clock(rise_local_mean - lng_hour, day, tz),
        sunset=_to_local_clock(set_local_mean - lng_hour, day, tz),
    )
