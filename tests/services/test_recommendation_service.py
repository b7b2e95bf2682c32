"""
Unit tests for the recommendation facade.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pickup_geo.core.exceptions import InvalidInputError, UnresolvableLocationError
from pickup_geo.schemas.geo import Coordinates, LocationProvider, LocationQuery
from pickup_geo.schemas.venue import VenueFilters, VenueType
from pickup_geo.schemas.weather import WeatherCondition, WeatherSource
from pickup_geo.services.geocoding_service import GeocodingService
from pickup_geo.services.provider_chain import Found
from pickup_geo.services.recommendation_service import RecommendationService
from pickup_geo.services.venue_scoring_service import VenueScoringService
from pickup_geo.services.venue_service import StaticVenueProvider
from pickup_geo.services.weather_service import placeholder_snapshot
from pickup_geo.utils.concurrency import SingleFlight
from tests.fakes import FakeGeocoder, FakeWeatherService, resolved, snapshot, venue

GAINESVILLE = Coordinates(latitude=29.65, longitude=-82.32)


@pytest.fixture
def geocoder():
    return FakeGeocoder(
        "google",
        LocationProvider.PRIMARY_GEOCODER,
        forward=Found(resolved(29.65, -82.32, "Gainesville, FL, USA")),
    )


@pytest.fixture
def weather():
    return FakeWeatherService(snapshot(75))


@pytest.fixture
def service(geocoder, weather):
    geocoding = GeocodingService(
        forward_providers=[geocoder],
        reverse_providers=[geocoder],
        timeout=0.5,
        single_flight=SingleFlight(ttl_seconds=0),
    )
    return RecommendationService(
        geocoding=geocoding,
        weather=weather,
        scoring=VenueScoringService(weather=weather),
    )


@pytest.fixture
def candidates():
    return StaticVenueProvider(
        [
            venue("rec-center", 29.66, -82.32, VenueType.INDOOR, rating=4.7, total_ratings=80),
            venue("park-court", 29.655, -82.32, VenueType.OUTDOOR, rating=3.9),
            venue("soccer-field", 29.651, -82.32, VenueType.OUTDOOR, sports=["soccer"]),
        ]
    )


@pytest.mark.asyncio
async def test_recommend_end_to_end(service, candidates, weather):
    result = await service.recommend(
        LocationQuery(text="Gainesville"), "basketball", None, candidates
    )

    assert result.location.formatted_address == "Gainesville, FL, USA"
    assert result.weather.source == WeatherSource.FORECAST
    assert [r.venue.id for r in result.recommendations] == ["rec-center", "park-court"]
    # one lookup for the location, one for the outdoor court
    assert len(weather.calls) == 2


@pytest.mark.asyncio
async def test_recommend_respects_filters_and_limit(service, candidates):
    result = await service.recommend(
        LocationQuery(text="Gainesville"),
        "basketball",
        None,
        candidates,
        filters=VenueFilters(venue_type=VenueType.OUTDOOR),
        limit=1,
    )

    assert [r.venue.id for r in result.recommendations] == ["park-court"]


@pytest.mark.asyncio
async def test_blank_sport_rejected_before_lookups(service, candidates, geocoder):
    with pytest.raises(InvalidInputError):
        await service.recommend(LocationQuery(text="Gainesville"), "  ", None, candidates)

    assert geocoder.forward_calls == 0


@pytest.mark.asyncio
async def test_unresolvable_location_propagates(service, candidates, geocoder):
    geocoder.forward = None

    with pytest.raises(UnresolvableLocationError):
        await service.recommend(LocationQuery(text="xyzzy"), "basketball", None, candidates)


@pytest.mark.asyncio
async def test_candidate_failure_degrades_to_empty(service):
    broken = MagicMock()
    broken.get_venues_near = AsyncMock(side_effect=RuntimeError("database is down"))

    result = await service.recommend(
        LocationQuery(text="Gainesville"), "basketball", None, broken
    )

    assert result.recommendations == []
    assert result.location.coordinates == GAINESVILLE


@pytest.mark.asyncio
async def test_placeholder_weather_is_passed_through(geocoder, candidates):
    weather = FakeWeatherService(placeholder_snapshot("Gainesville, FL"))
    service = RecommendationService(
        geocoding=GeocodingService(
            forward_providers=[geocoder],
            reverse_providers=[],
            single_flight=SingleFlight(ttl_seconds=0),
        ),
        weather=weather,
        scoring=VenueScoringService(weather=weather),
    )

    result = await service.recommend(
        LocationQuery(text="Gainesville"), "basketball", None, candidates
    )

    assert result.weather.source == WeatherSource.PLACEHOLDER
    # placeholder weather still ranks venues
    assert result.recommendations[0].venue.id == "rec-center"


@pytest.mark.asyncio
async def test_weather_suggestions_groups_by_shelter(service, candidates):
    suggestions = await service.weather_suggestions(GAINESVILLE, "basketball", None, candidates)

    assert suggestions.prefer_indoor is False
    assert [v.id for v in suggestions.indoor] == ["rec-center"]
    assert [v.id for v in suggestions.outdoor] == ["park-court"]


@pytest.mark.asyncio
async def test_weather_suggestions_prefer_indoor_in_a_storm(geocoder, candidates):
    weather = FakeWeatherService(snapshot(78, WeatherCondition.THUNDERSTORM))
    service = RecommendationService(
        geocoding=GeocodingService(
            forward_providers=[geocoder],
            reverse_providers=[],
            single_flight=SingleFlight(ttl_seconds=0),
        ),
        weather=weather,
        scoring=VenueScoringService(weather=weather),
    )

    suggestions = await service.weather_suggestions(GAINESVILLE, "basketball", None, candidates)

    assert suggestions.prefer_indoor is True
    assert suggestions.weather.condition == WeatherCondition.THUNDERSTORM
    assert weather.calls == [GAINESVILLE]


@pytest.mark.asyncio
async def test_weather_suggestions_keep_five_best_per_group(service):
    courts = [
        venue(f"court-{i}", 29.65, -82.32, VenueType.OUTDOOR, rating=3.0 + i * 0.2)
        for i in range(7)
    ]
    gym = venue("gym", 29.65, -82.32, VenueType.MIXED, rating=4.0)

    suggestions = await service.weather_suggestions(
        GAINESVILLE, "basketball", None, StaticVenueProvider([*courts, gym])
    )

    assert [v.id for v in suggestions.indoor] == ["gym"]
    assert len(suggestions.outdoor) == 5
    assert [v.id for v in suggestions.outdoor][:2] == ["court-6", "court-5"]
    ratings = [v.average_rating for v in suggestions.outdoor]
    assert ratings == sorted(ratings, reverse=True)


@pytest.mark.asyncio
async def test_weather_suggestions_reject_blank_sport(service, candidates, weather):
    with pytest.raises(InvalidInputError):
        await service.weather_suggestions(GAINESVILLE, " ", None, candidates)

    assert weather.calls == []


@pytest.mark.asyncio
async def test_weather_suggestions_survive_candidate_failure(service):
    broken = MagicMock()
    broken.get_venues_near = AsyncMock(side_effect=RuntimeError("database is down"))

    suggestions = await service.weather_suggestions(GAINESVILLE, "basketball", None, broken)

    assert suggestions.indoor == []
    assert suggestions.outdoor == []
