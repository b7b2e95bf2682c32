"""
Weather Schemas

Normalized weather snapshot returned by the weather lookup, independent of
the provider that produced it.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from pickup_geo.schemas.geo import Coordinates

# Bump when the outdoor rule below changes so cached snapshots can be told apart
OUTDOOR_POLICY_VERSION = 1

OUTDOOR_MIN_TEMPERATURE_F = 40.0
OUTDOOR_MAX_TEMPERATURE_F = 95.0


class WeatherCondition(str, Enum):
    """Main weather group as reported by the providers."""

    CLEAR = "Clear"
    CLOUDS = "Clouds"
    RAIN = "Rain"
    DRIZZLE = "Drizzle"
    THUNDERSTORM = "Thunderstorm"
    SNOW = "Snow"
    MIST = "Mist"
    FOG = "Fog"
    HAZE = "Haze"
    SMOKE = "Smoke"
    DUST = "Dust"
    SAND = "Sand"
    ASH = "Ash"
    SQUALL = "Squall"
    TORNADO = "Tornado"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "WeatherCondition":
        if not value:
            return cls.UNKNOWN
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return cls.UNKNOWN


SEVERE_CONDITIONS = frozenset({WeatherCondition.THUNDERSTORM, WeatherCondition.SNOW})


def is_outdoor_friendly(temperature_f: float, condition: WeatherCondition) -> bool:
    """Outdoor play policy: a comfortable temperature band and no severe weather."""
    return (
        OUTDOOR_MIN_TEMPERATURE_F < temperature_f < OUTDOOR_MAX_TEMPERATURE_F
        and condition not in SEVERE_CONDITIONS
    )


class WeatherSource(str, Enum):
    """Where a snapshot came from."""

    FORECAST = "forecast"
    CURRENT = "current"
    DEFAULT_AREA = "default_area"
    PLACEHOLDER = "placeholder"


class WeatherSnapshot(BaseModel):
    """Weather at a place and time, with the outdoor-friendliness judgment."""

    model_config = ConfigDict(frozen=True)

    temperature_f: float
    condition: WeatherCondition
    description: str
    humidity_pct: float
    wind_mph: float
    precipitation: float = Field(0.0, description="Precipitation in millimetres")
    alerts: List[str] = Field(default_factory=list)
    source: WeatherSource = WeatherSource.FORECAST

    @computed_field  # type: ignore[prop-decorator]
    @property
    def outdoor_friendly(self) -> bool:
        return is_outdoor_friendly(self.temperature_f, self.condition)


class WeatherForecastRequest(BaseModel):
    """Request schema for the weather forecast endpoint."""

    coordinates: Optional[Coordinates] = Field(
        None, description="Venue coordinates; the default area is used when omitted"
    )
    when: Optional[datetime] = Field(
        None, description="Game time (ISO format). Defaults to now if not provided."
    )


class WeatherForecastResponse(BaseModel):
    """Response schema for the weather forecast endpoint."""

    weather: WeatherSnapshot
    recommendation: str
