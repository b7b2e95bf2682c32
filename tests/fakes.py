"""
In-memory provider doubles for service tests.

``outcome`` may be a Found/NoMatch/Failure, a plain value, None, or an
exception instance to raise.
"""

import asyncio
from typing import Any, Optional

from pickup_geo.schemas.geo import Coordinates, LocationProvider, ResolvedLocation
from pickup_geo.schemas.weather import WeatherCondition, WeatherSnapshot, WeatherSource
from pickup_geo.schemas.venue import Venue, VenueType


async def _produce(outcome: Any, delay: float) -> Any:
    if delay:
        await asyncio.sleep(delay)
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome


class FakeGeocoder:
    def __init__(
        self,
        name: str,
        source: LocationProvider,
        forward: Any = None,
        reverse: Any = None,
        delay: float = 0.0,
        configured: bool = True,
    ):
        self.name = name
        self.source = source
        self.forward = forward
        self.reverse = reverse
        self.delay = delay
        self.configured = configured
        self.forward_calls = 0
        self.reverse_calls = 0

    def is_configured(self) -> bool:
        return self.configured

    async def attempt(self, text: str):
        self.forward_calls += 1
        return await _produce(self.forward, self.delay)

    async def attempt_reverse(self, coordinates: Coordinates):
        self.reverse_calls += 1
        return await _produce(self.reverse, self.delay)


class FakeWeatherProvider:
    def __init__(self, name: str, outcome: Any = None, delay: float = 0.0):
        self.name = name
        self.outcome = outcome
        self.delay = delay
        self.requests = []

    async def attempt(self, request):
        self.requests.append(request)
        return await _produce(self.outcome, self.delay)


class FakeWeatherService:
    """Stands in for WeatherService.forecast_for, keyed by coordinates."""

    def __init__(self, default: WeatherSnapshot, overrides: Optional[dict] = None):
        self.default = default
        self.overrides = overrides or {}
        self.calls = []

    async def forecast_for(self, coordinates, when_local=None, cancel_event=None):
        self.calls.append(coordinates)
        return self.overrides.get(coordinates, self.default)


def resolved(
    latitude: float,
    longitude: float,
    address: str = "Somewhere",
    source: LocationProvider = LocationProvider.PRIMARY_GEOCODER,
    precise: bool = True,
) -> ResolvedLocation:
    return ResolvedLocation(
        coordinates=Coordinates(latitude=latitude, longitude=longitude),
        formatted_address=address,
        source_provider=source,
        precise=precise,
    )


def snapshot(
    temperature_f: float = 75.0,
    condition: WeatherCondition = WeatherCondition.CLEAR,
    source: WeatherSource = WeatherSource.FORECAST,
) -> WeatherSnapshot:
    return WeatherSnapshot(
        temperature_f=temperature_f,
        condition=condition,
        description=condition.value,
        humidity_pct=60.0,
        wind_mph=5.0,
        precipitation=0.0,
        alerts=[],
        source=source,
    )


def venue(
    venue_id: str,
    latitude: float,
    longitude: float,
    venue_type: VenueType = VenueType.INDOOR,
    sports=("basketball",),
    rating: float = 4.0,
    total_ratings: int = 10,
) -> Venue:
    return Venue(
        id=venue_id,
        name=venue_id.replace("-", " ").title(),
        coordinates=Coordinates(latitude=latitude, longitude=longitude),
        venue_type=venue_type,
        supported_sports=list(sports),
        average_rating=rating,
        total_ratings=total_ratings,
    )
