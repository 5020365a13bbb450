"""Settings models for Marine Report."""
import configparser
import logging
from pathlib import Path
from typing import List, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("models.settings")

# share of the per-source deadline a cache refresh may spend upstream
REFRESH_DEADLINE_FRACTION = 0.8


class ApiSettings(BaseModel):
    """API settings including keys and credentials."""

    model_config = ConfigDict(validate_assignment=True)

    stormglass_key: str = Field("", description="Stormglass API key for wave forecasts")


class GeneralSettings(BaseModel):
    """General application settings."""

    model_config = ConfigDict(validate_assignment=True)

    timeout: int = Field(20, description="HTTP request timeout in seconds")
    source_timeout: float = Field(15.0, description="Deadline for a single source fetch in seconds")
    max_retries: int = Field(2, description="Transport attempts per request")
    user_agent: str = Field(
        "MarineReport/1.0",
        description="User agent string for HTTP requests"
    )
    timezone: str = Field("America/Chicago", description="Local display timezone")
    cache_dir: str = Field(".cache", description="Directory for the persistent cache store")
    debug: bool = Field(False, description="Enable debug mode")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout."""
        if v < 1:
            logger.warning(f"Timeout is too short: {v}s, using 1s")
            return 1
        if v > 120:
            logger.warning(f"Timeout is very long: {v}s, capping at 120s")
            return 120
        return v

    @field_validator("source_timeout")
    @classmethod
    def validate_source_timeout(cls, v: float) -> float:
        """Validate per-source deadline."""
        if v <= 0:
            logger.warning(f"Source timeout must be positive, got {v}s, using 15s")
            return 15.0
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """At least one attempt is always made."""
        return max(v, 1)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate that the timezone name is known."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {v!r}, using UTC")
            return "UTC"
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def refresh_timeout(self) -> float:
        """Deadline for an upstream refresh, kept inside the source deadline."""
        return self.source_timeout * REFRESH_DEADLINE_FRACTION

    @property
    def request_timeout(self) -> float:
        """Total timeout of one HTTP request, never longer than a refresh."""
        return min(float(self.timeout), self.refresh_timeout)


class StationSettings(BaseModel):
    """Buoy and tide station identifiers."""

    model_config = ConfigDict(validate_assignment=True)

    gulf_buoy: str = Field("BZST2", description="NDBC station for the gulf reading")
    bay_buoy: str = Field("PCGT2", description="NDBC station for the bay reading")
    tide_station: str = Field("8779750", description="NOAA CO-OPS tide prediction station")


class LocationSettings(BaseModel):
    """Geographic points used by the wave and sun sources."""

    model_config = ConfigDict(validate_assignment=True)

    waves_lat: float = Field(26.071389, description="Latitude of the wave forecast point")
    waves_lon: float = Field(-97.128722, description="Longitude of the wave forecast point")
    sun_lat: float = Field(26.07139, description="Latitude for sunrise/sunset")
    sun_lon: float = Field(-97.12872, description="Longitude for sunrise/sunset")

    @field_validator("waves_lat", "sun_lat")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        if not -90.0 <= v <= 90.0:
            raise ValueError(f"Latitude out of range: {v}")
        return v

    @field_validator("waves_lon", "sun_lon")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        if not -180.0 <= v <= 180.0:
            raise ValueError(f"Longitude out of range: {v}")
        return v


class WaveSettings(BaseModel):
    """Settings for the wave forecast source and its cache."""

    model_config = ConfigDict(validate_assignment=True)

    source: str = Field("stormglass", description="Wave upstream: stormglass or snapshot")
    stormglass_url: str = Field(
        "https://api.stormglass.io/v2/weather/point",
        description="Stormglass point forecast endpoint"
    )
    snapshot_url: str = Field(
        "https://raw.githubusercontent.com/nottbob/wave-proxy/refs/heads/main/stormglass.json",
        description="Pre-fetched wave snapshot in cache schema"
    )
    cache_ttl_hours: float = Field(4.0, description="Maximum age of the cached series")
    refresh_hours: List[int] = Field(
        default_factory=lambda: [0, 12],
        description="Local hours whose passing forces a refresh"
    )

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("stormglass", "snapshot"):
            logger.warning(f"Unknown wave source {v!r}, using stormglass")
            return "stormglass"
        return v

    @field_validator("cache_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            logger.warning(f"Cache TTL must be positive, got {v}h, using 4h")
            return 4.0
        return v

    @field_validator("refresh_hours")
    @classmethod
    def validate_refresh_hours(cls, v: List[int]) -> List[int]:
        hours = sorted({h for h in v if 0 <= h <= 23})
        if len(hours) != len(set(v)):
            logger.warning(f"Ignoring refresh hours outside 0-23 in {v}")
        return hours


class Settings(BaseModel):
    """Complete application settings."""

    model_config = ConfigDict(validate_assignment=True)

    api: ApiSettings = Field(default_factory=ApiSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    stations: StationSettings = Field(default_factory=StationSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    waves: WaveSettings = Field(default_factory=WaveSettings)


def default_settings() -> Settings:
    """Settings with every value at its default."""
    return Settings()


def _parse_hours(raw: str) -> List[int]:
    hours = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            hours.append(int(part))
        except ValueError:
            logger.warning(f"Ignoring invalid refresh hour: {part!r}")
    return hours


def load_settings(config_path: Union[str, Path]) -> Settings:
    """
    Load settings from a configuration file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Settings object

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        configparser.Error: If there's an error parsing the configuration
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config = configparser.ConfigParser()
    config.read(path)

    defaults = GeneralSettings()
    general_settings = GeneralSettings(
        timeout=config.getint("GENERAL", "TIMEOUT", fallback=defaults.timeout),
        source_timeout=config.getfloat("GENERAL", "SOURCE_TIMEOUT", fallback=defaults.source_timeout),
        max_retries=config.getint("GENERAL", "MAX_RETRIES", fallback=defaults.max_retries),
        user_agent=config.get("GENERAL", "USER_AGENT", fallback=defaults.user_agent),
        timezone=config.get("GENERAL", "TIMEZONE", fallback=defaults.timezone),
        cache_dir=config.get("GENERAL", "CACHE_DIR", fallback=defaults.cache_dir),
        debug=config.getboolean("GENERAL", "DEBUG", fallback=False),
    )

    station_defaults = StationSettings()
    station_settings = StationSettings(
        gulf_buoy=config.get("STATIONS", "GULF_BUOY", fallback=station_defaults.gulf_buoy),
        bay_buoy=config.get("STATIONS", "BAY_BUOY", fallback=station_defaults.bay_buoy),
        tide_station=config.get("STATIONS", "TIDE_STATION", fallback=station_defaults.tide_station),
    )

    location_defaults = LocationSettings()
    location_settings = LocationSettings(
        waves_lat=config.getfloat("LOCATION", "WAVES_LAT", fallback=location_defaults.waves_lat),
        waves_lon=config.getfloat("LOCATION", "WAVES_LON", fallback=location_defaults.waves_lon),
        sun_lat=config.getfloat("LOCATION", "SUN_LAT", fallback=location_defaults.sun_lat),
        sun_lon=config.getfloat("LOCATION", "SUN_LON", fallback=location_defaults.sun_lon),
    )

    wave_defaults = WaveSettings()
    wave_settings = WaveSettings(
        source=config.get("WAVES", "SOURCE", fallback=wave_defaults.source),
        stormglass_url=config.get("WAVES", "STORMGLASS_URL", fallback=wave_defaults.stormglass_url),
        snapshot_url=config.get("WAVES", "SNAPSHOT_URL", fallback=wave_defaults.snapshot_url),
        cache_ttl_hours=config.getfloat("WAVES", "CACHE_TTL_HOURS", fallback=wave_defaults.cache_ttl_hours),
        refresh_hours=_parse_hours(config.get("WAVES", "REFRESH_HOURS", fallback="0,12")),
    )

    api_settings = ApiSettings(
        stormglass_key=config.get("API", "STORMGLASS_KEY", fallback=""),
    )

    settings = Settings(
        api=api_settings,
        general=general_settings,
        stations=station_settings,
        location=location_settings,
        waves=wave_settings,
    )

    return settings
