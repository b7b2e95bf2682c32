"""
Weather Providers

Strategy objects for the weather chain, backed by the OpenWeatherMap 2.5 API
(https://openweathermap.org/api). All requests use imperial units, so
temperatures are in Fahrenheit and wind speeds in mph.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import CoordinatesRejectedError, ProviderError
from pickup_geo.schemas.geo import Coordinates
from pickup_geo.schemas.weather import WeatherCondition, WeatherSnapshot, WeatherSource
from pickup_geo.services.provider_chain import Found, HttpProvider, NoMatch

logger = logging.getLogger(__name__)

FORECAST_STEP = timedelta(hours=3)
PAST_GAME_GRACE = timedelta(hours=1)

SAME_DAY_APPROXIMATION_ALERT = (
    "Forecast unavailable for the requested time; showing today's conditions as an approximation."
)


@dataclass(frozen=True)
class WeatherRequest:
    """Coordinates (None when unknown) and the target time in UTC."""

    coordinates: Optional[Coordinates]
    when_utc: datetime


def advisory_alerts(
    temperature_f: float,
    condition: WeatherCondition,
    precipitation: float,
    wind_mph: float,
) -> List[str]:
    """Player-facing advice derived from the conditions."""
    alerts = []
    if temperature_f < 50:
        alerts.append("Dress warmly - temperature below 50°F")
    elif temperature_f > 90:
        alerts.append("Stay hydrated - high temperature expected")

    if precipitation > 0:
        alerts.append("Rain expected - consider an indoor backup plan")

    if wind_mph > 15:
        alerts.append("Windy conditions - secure loose items")

    if condition == WeatherCondition.THUNDERSTORM:
        alerts.append("Thunderstorm warning - move indoors")
    return alerts


def _capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split())


class OpenWeatherProvider(HttpProvider):
    """Shared request and parsing logic for OpenWeatherMap endpoints."""

    name = "openweather"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(
            base_url or settings.OPENWEATHER_API_URL,
            timeout or settings.PROVIDER_TIMEOUT_SECONDS,
        )
        self._api_key = settings.OPENWEATHER_API_KEY if api_key is None else api_key

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _get(self, path: str, coordinates: Coordinates) -> dict:
        """
        Raises:
            CoordinatesRejectedError: If the API refuses the coordinates (HTTP 400)
            ProviderError: On any other non-200 response
        """
        client = self._get_client()
        response = await client.get(
            path,
            params={
                "lat": coordinates.latitude,
                "lon": coordinates.longitude,
                "appid": self._api_key,
                "units": "imperial",
            },
        )
        if response.status_code == 400:
            raise CoordinatesRejectedError(f"{self.name} rejected coordinates {coordinates}")
        if response.status_code != 200:
            raise ProviderError(f"{self.name} returned HTTP {response.status_code}")
        return response.json()

    @staticmethod
    def _parse_entry(
        entry: dict, precipitation_window: str, source: WeatherSource
    ) -> WeatherSnapshot:
        main = entry["main"]
        weather = (entry.get("weather") or [{}])[0]
        wind = entry.get("wind") or {}

        temperature_f = round(float(main["temp"]))
        condition = WeatherCondition.parse(weather.get("main"))
        precipitation = float(
            (entry.get("rain") or {}).get(precipitation_window)
            or (entry.get("snow") or {}).get(precipitation_window)
            or 0
        )
        wind_mph = round(float(wind.get("speed") or 0))

        return WeatherSnapshot(
            temperature_f=temperature_f,
            condition=condition,
            description=_capitalize_words(weather.get("description") or condition.value),
            humidity_pct=float(main.get("humidity") or 0),
            wind_mph=wind_mph,
            precipitation=precipitation,
            alerts=advisory_alerts(temperature_f, condition, precipitation, wind_mph),
            source=source,
        )


class OpenWeatherForecastProvider(OpenWeatherProvider):
    """5 day / 3 hour forecast, picking the entry closest to the game time."""

    name = "openweather_forecast"

    def __init__(self, *args, clock: Optional[Callable[[], datetime]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def attempt(self, request: WeatherRequest):
        if request.coordinates is None:
            return NoMatch("no coordinates")
        if request.when_utc < self._clock() - PAST_GAME_GRACE:
            return NoMatch("requested time is in the past")

        data = await self._get("/forecast", request.coordinates)
        entries = data.get("list") or []
        if not entries:
            return NoMatch("empty forecast")

        target = request.when_utc.timestamp()
        closest = min(entries, key=lambda e: abs(e["dt"] - target))
        last_dt = max(e["dt"] for e in entries)
        if target > last_dt + FORECAST_STEP.total_seconds():
            return NoMatch("requested time is beyond the forecast window")

        logger.debug(
            "Forecast entry %s is %.1fh from the requested time",
            closest["dt"],
            abs(closest["dt"] - target) / 3600,
        )
        return Found(self._parse_entry(closest, "3h", WeatherSource.FORECAST))


class OpenWeatherCurrentProvider(OpenWeatherProvider):
    """Current conditions; the requested time is ignored."""

    name = "openweather_current"

    async def attempt(self, request: WeatherRequest):
        if request.coordinates is None:
            return NoMatch("no coordinates")

        data = await self._get("/weather", request.coordinates)
        snapshot = self._parse_entry(data, "1h", WeatherSource.CURRENT)
        return Found(
            snapshot.model_copy(update={"alerts": [SAME_DAY_APPROXIMATION_ALERT, *snapshot.alerts]})
        )


class DefaultAreaWeatherProvider:
    """
    Current conditions for the configured default area, used when the venue
    coordinates cannot be used at all.
    """

    name = "default_area"

    def __init__(
        self,
        current_provider: Optional[OpenWeatherCurrentProvider] = None,
        coordinates: Optional[Coordinates] = None,
        area_name: Optional[str] = None,
    ):
        self._current = current_provider or OpenWeatherCurrentProvider()
        self._coordinates = coordinates or Coordinates(
            latitude=settings.DEFAULT_LATITUDE, longitude=settings.DEFAULT_LONGITUDE
        )
        self._area_name = area_name or settings.DEFAULT_LOCATION_NAME

    def is_configured(self) -> bool:
        return self._current.is_configured()

    async def attempt(self, request: WeatherRequest):
        outcome = await self._current.attempt(
            WeatherRequest(coordinates=self._coordinates, when_utc=request.when_utc)
        )
        if not isinstance(outcome, Found):
            return outcome

        snapshot = outcome.value
        alert = f"Weather shown is for the {self._area_name} area, not the venue."
        return Found(
            snapshot.model_copy(
                update={"alerts": [alert, *snapshot.alerts], "source": WeatherSource.DEFAULT_AREA}
            )
        )

    async def close(self):
        await self._current.close()
