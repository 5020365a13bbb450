"""Shared fixtures: sample payloads, fake HTTP client, fixed clock."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

import pytest

from marine_report.errors import MalformedPayload, UpstreamUnavailable
from marine_report.models.settings import GeneralSettings, Settings

# 2024-06-21 13:00 CDT: no 00:00/12:00 local boundary in the following four hours
NOW = datetime(2024, 6, 21, 18, 0, tzinfo=timezone.utc)

REALTIME2_TEXT = """\
#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE
#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft
2024 06 21 17 54 140  6.2  7.7    MM    MM    MM  MM 1012.1    MM  29.4  24.1   MM   MM    MM
2024 06 21 17 48 150  5.7  7.2    MM    MM    MM  MM 1012.2  28.3  29.3  24.0   MM   MM    MM
2024 06 21 17 42 150  5.5  7.0    MM    MM    MM  MM 1012.2  28.2  29.3  24.0   MM   MM    MM
"""

TIDE_PAYLOAD = {
    "predictions": [
        {"t": "2024-06-21 03:12", "v": "-0.123", "type": "L"},
        {"t": "2024-06-21 10:45", "v": "1.456", "type": "H"},
        {"t": "2024-06-21 19:00", "v": "0.2", "type": "L"},
        {"t": "2024-06-22 01:00", "v": "1.9", "type": "H"},
    ]
}

STORMGLASS_PAYLOAD = {
    "hours": [
        {"time": "2024-06-21T16:00:00+00:00", "waveHeight": {"sg": 0.9}},
        {"time": "2024-06-21T17:00:00+00:00", "waveHeight": {"sg": 1.0}},
        {"time": "2024-06-21T18:00:00+00:00", "waveHeight": {"sg": 1.1}},
        {"time": "2024-06-21T19:00:00+00:00", "waveHeight": {"sg": 1.2}},
    ],
    "meta": {"lat": 26.071389, "lng": -97.128722},
}

Response = Union[str, Dict[str, Any], List[Any], Exception]


class FakeHttpClient:
    """Serves canned responses by URL (query parameters ignored)."""

    def __init__(self, routes: Optional[Mapping[str, Response]] = None):
        self.routes: Dict[str, Response] = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    async def fetch_text(self, url: str, *, params=None, headers=None) -> str:
        self.calls.append({"url": url, "params": params, "headers": headers})
        if url not in self.routes:
            raise UpstreamUnavailable(f"HTTP error 404: {url}", status=404)
        response = self.routes[url]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)

    async def fetch_json(self, url: str, *, params=None, headers=None) -> Any:
        text = await self.fetch_text(url, params=params, headers=headers)
        try:
            return json.loads(text)
        except ValueError as e:
            raise MalformedPayload(f"Invalid JSON from {url}: {e}") from e

    def urls(self) -> List[str]:
        return [call["url"] for call in self.calls]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def settings(tmp_path) -> Settings:
    settings = Settings(general=GeneralSettings(cache_dir=str(tmp_path / "cache"), source_timeout=2.0))
    settings.api.stormglass_key = "test-key"
    return settings


@pytest.fixture
def realtime2_text() -> str:
    return REALTIME2_TEXT
