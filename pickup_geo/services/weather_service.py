"""
Weather Service

Answers "what will the weather be at this place at game time?" and whether
it suits outdoor play. Absence of weather data must never block a screen, so
``forecast_for`` never raises: when every provider fails it returns a
clearly labelled placeholder snapshot.

Chain:
1. 5 day forecast for the coordinates at the requested time
2. current conditions for the coordinates (same-day approximation)
3. current conditions for the default area, only when the coordinates are
   unusable (missing, or rejected by the provider)
4. placeholder
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import CoordinatesRejectedError
from pickup_geo.schemas.geo import Coordinates
from pickup_geo.schemas.health import ServiceHealth
from pickup_geo.schemas.weather import WeatherCondition, WeatherSnapshot, WeatherSource
from pickup_geo.services.provider_chain import ProviderChain
from pickup_geo.services.weather_providers import (
    DefaultAreaWeatherProvider,
    OpenWeatherCurrentProvider,
    OpenWeatherForecastProvider,
    WeatherRequest,
)
from pickup_geo.utils.concurrency import SingleFlight

logger = logging.getLogger(__name__)

PLACEHOLDER_TEMPERATURE_F = 72.0


def placeholder_snapshot(location_label: str) -> WeatherSnapshot:
    """Neutral snapshot used when no provider could answer."""
    return WeatherSnapshot(
        temperature_f=PLACEHOLDER_TEMPERATURE_F,
        condition=WeatherCondition.UNKNOWN,
        description="Weather data temporarily unavailable",
        humidity_pct=0.0,
        wind_mph=0.0,
        precipitation=0.0,
        alerts=[f"Weather data unavailable for {location_label}; conditions not verified."],
        source=WeatherSource.PLACEHOLDER,
    )


def weather_recommendation(snapshot: WeatherSnapshot) -> str:
    """One-line advice for players, shown next to the forecast."""
    if snapshot.source == WeatherSource.PLACEHOLDER:
        return "Weather data unavailable - dress appropriately for current conditions."
    if snapshot.outdoor_friendly:
        return "Great conditions for outdoor play!"

    advice = []
    if snapshot.temperature_f <= 40:
        advice.append("Dress warmly - temperatures are quite cold")
    elif snapshot.temperature_f >= 95:
        advice.append("Stay hydrated - it's very hot outside")
    if snapshot.condition in (WeatherCondition.THUNDERSTORM, WeatherCondition.SNOW):
        advice.append(f"{snapshot.condition.value} expected - consider an indoor venue")
    if snapshot.wind_mph > 15:
        advice.append("Expect windy conditions")
    if snapshot.precipitation > 0:
        advice.append("Bring rain gear")

    if not advice:
        return "Check current conditions before heading out."
    return ". ".join(advice) + "."


class WeatherService:
    """
    Weather lookup over an ordered provider chain.

    ``providers`` are tried for usable coordinates; ``fallback_providers``
    only when the coordinates are unusable.
    """

    def __init__(
        self,
        providers: Optional[Sequence] = None,
        fallback_providers: Optional[Sequence] = None,
        timeout: Optional[float] = None,
        single_flight: Optional[SingleFlight] = None,
        default_timezone: Optional[str] = None,
    ):
        if providers is None or fallback_providers is None:
            current = OpenWeatherCurrentProvider()
            if providers is None:
                providers = [OpenWeatherForecastProvider(), current]
            if fallback_providers is None:
                fallback_providers = [DefaultAreaWeatherProvider(current)]

        self.providers: List = list(providers)
        self.fallback_providers: List = list(fallback_providers)
        self._chain = ProviderChain(
            "weather", timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS
        )
        self._single_flight = single_flight or SingleFlight(
            settings.INFLIGHT_DEDUP_SECONDS, settings.RESPONSE_CACHE_MAX_ENTRIES
        )
        self._default_timezone = default_timezone or settings.DEFAULT_TIMEZONE

    def _to_utc(self, when_local: Optional[datetime]) -> datetime:
        if when_local is None:
            return datetime.now(timezone.utc)
        if when_local.tzinfo is None:
            try:
                when_local = when_local.replace(tzinfo=ZoneInfo(self._default_timezone))
            except (KeyError, ValueError):
                logger.warning("Unknown timezone %s, assuming UTC", self._default_timezone)
                when_local = when_local.replace(tzinfo=timezone.utc)
        return when_local.astimezone(timezone.utc)

    async def forecast_for(
        self,
        coordinates: Optional[Coordinates],
        when_local: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> WeatherSnapshot:
        """
        Weather for a place at a game time.

        Args:
            coordinates: Where the game is; None when unknown
            when_local: Game time; naive values are in the default timezone,
                None means now
            cancel_event: Optional event; setting it abandons the call

        Returns:
            WeatherSnapshot, a placeholder when no provider could answer
        """
        label = coordinates.as_label() if coordinates is not None else settings.DEFAULT_LOCATION_NAME
        try:
            when_utc = self._to_utc(when_local).replace(second=0, microsecond=0)
            key = ("forecast", coordinates, when_utc)
            return await self._single_flight.do(
                key, lambda: self._forecast(coordinates, when_utc, label), cancel_event
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error in weather lookup for %s", label)
            return placeholder_snapshot(label)

    async def _forecast(
        self, coordinates: Optional[Coordinates], when_utc: datetime, label: str
    ) -> WeatherSnapshot:
        request = WeatherRequest(coordinates=coordinates, when_utc=when_utc)

        if coordinates is not None:
            result = await self._chain.run(self.providers, request)
            if result.found:
                return result.value
            if not result.failed_with(CoordinatesRejectedError):
                return placeholder_snapshot(label)
            logger.warning("Weather providers rejected %s, using the default area", coordinates)

        result = await self._chain.run(self.fallback_providers, request)
        if result.found:
            return result.value
        return placeholder_snapshot(label)

    async def health_check(self) -> ServiceHealth:
        configured = [
            p.name for p in self.providers if getattr(p, "is_configured", lambda: True)()
        ]
        if configured:
            return ServiceHealth(
                healthy=True, message=f"Weather providers available: {', '.join(configured)}"
            )
        return ServiceHealth(
            healthy=False, message="No weather provider is configured; placeholders will be served"
        )

    async def close(self):
        for provider in [*self.providers, *self.fallback_providers]:
            close = getattr(provider, "close", None)
            if callable(close):
                await close()


# Singleton instance for dependency injection
weather_service = WeatherService()
