"""NOAA CO-OPS tide prediction agent for Marine Report."""
import logging
from datetime import datetime, time, timezone, tzinfo
from typing import Any, Optional

from ..data.base_agent import BaseAgent
from ..data.collection_context import CollectionContext
from ..errors import MalformedPayload, MissingField
from ..models.buoy_data import round_half_away
from ..models.report import TideEvent, TidePrediction
from ..utils.http import query

logger = logging.getLogger("agents.tide")

COOPS_DATAGETTER_URL = "https://api.tidesandcurrents.noaa.gov/api/prod/datagetter"


def day_start_utc(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight of the day containing ``now``, expressed in UTC."""
    local_day = now.astimezone(tz).date()
    return datetime.combine(local_day, time(0, 0), tzinfo=tz).astimezone(timezone.utc)


def parse_tide_event(prediction: Any, tz: tzinfo) -> TideEvent:
    """
    Build a TideEvent from one GMT prediction.

    Raises:
        MissingField: If the time or height is absent or unparseable
    """
    if not isinstance(prediction, dict):
        raise MissingField(f"Prediction is not an object: {prediction!r}")
    try:
        moment = datetime.strptime(str(prediction["t"]), "%Y-%m-%d %H:%M").replace(tzinfo=timezone.utc)
        height = float(prediction["v"])
    except (KeyError, TypeError, ValueError) as e:
        raise MissingField(f"Unusable tide prediction {prediction!r}: {e}") from None
    return TideEvent(time=moment.astimezone(tz).strftime("%H:%M"), height_ft=round_half_away(height))


def extract_hilo(payload: Any, tz: tzinfo) -> TidePrediction:
    """
    First high and first low in upstream order.

    Either side becomes None when the payload has no usable prediction of
    that type, but at least one of the two must be present.

    Raises:
        MalformedPayload: If the payload is not a JSON object, carries an
            API error instead of predictions, or has no usable high or low
    """
    if not isinstance(payload, dict):
        raise MalformedPayload("Tide payload is not an object")

    predictions = payload.get("predictions")
    if not isinstance(predictions, list):
        if "error" in payload:
            raise MalformedPayload(f"Tide API returned an error: {payload['error']}")
        raise MalformedPayload("Tide payload has no predictions")

    found = {"H": None, "L": None}
    for prediction in predictions:
        kind = prediction.get("type") if isinstance(prediction, dict) else None
        if kind not in found or found[kind] is not None:
            continue
        try:
            found[kind] = parse_tide_event(prediction, tz)
        except MissingField as e:
            logger.debug(f"Skipping tide prediction: {e}")
        if all(found.values()):
            break

    if not any(found.values()):
        raise MalformedPayload(f"No usable high or low among {len(predictions)} tide predictions")
    return TidePrediction(high=found["H"], low=found["L"])


class TideAgent(BaseAgent[TidePrediction]):
    """Today's first high and low tide for one station."""

    def __init__(self, station_id: str, url: str = COOPS_DATAGETTER_URL):
        super().__init__()
        self.station_id = station_id
        self.url = url

    @property
    def name(self) -> str:
        return "tides"

    def params(self, now: datetime, tz: tzinfo, application: Optional[str] = None) -> dict:
        begin = day_start_utc(now, tz)
        return query({
            "product": "predictions",
            "application": application,
            "station": self.station_id,
            "begin_date": begin.strftime("%Y%m%d %H:%M"),
            "range": 24,
            "datum": "MLLW",
            "interval": "hilo",
            "units": "english",
            "time_zone": "gmt",
            "format": "json",
        })

    async def fetch(self, ctx: CollectionContext) -> TidePrediction:
        self.logger.info(f"Collecting tide predictions for station {self.station_id}")
        params = self.params(ctx.now(), ctx.tz, application="marine_report")
        payload = await self.client(ctx).fetch_json(self.url, params=params)
        return extract_hilo(payload, ctx.tz)

    def fallback(self) -> TidePrediction:
        return TidePrediction.fallback()
