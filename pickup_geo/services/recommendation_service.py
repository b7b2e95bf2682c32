"""
Recommendation Service

Single entry point for screens that need "where should we play?": resolves
the location, looks up the weather there, pulls candidate venues from the
venue store and ranks them.

Only InvalidInputError and UnresolvableLocationError escape; weather and
venue problems degrade to placeholder weather or fewer recommendations.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import InvalidInputError
from pickup_geo.schemas.geo import Coordinates, LocationQuery
from pickup_geo.schemas.recommendation import RecommendationResult, WeatherSuggestions
from pickup_geo.schemas.venue import Venue, VenueFilters, VenueType
from pickup_geo.services.geocoding_service import GeocodingService, geocoding_service
from pickup_geo.services.venue_scoring_service import (
    VenueScoringService,
    venue_scoring_service,
)
from pickup_geo.services.venue_service import CandidateProvider
from pickup_geo.services.weather_service import WeatherService, weather_service

logger = logging.getLogger(__name__)

SUGGESTIONS_PER_GROUP = 5


class RecommendationService:
    """Orchestrates geocoding -> weather -> candidates -> ranking."""

    def __init__(
        self,
        geocoding: Optional[GeocodingService] = None,
        weather: Optional[WeatherService] = None,
        scoring: Optional[VenueScoringService] = None,
    ):
        self._geocoding = geocoding or geocoding_service
        self._weather = weather or weather_service
        self._scoring = scoring or venue_scoring_service

    async def recommend(
        self,
        query: LocationQuery,
        sport: str,
        when_local: Optional[datetime],
        candidate_provider: CandidateProvider,
        filters: Optional[VenueFilters] = None,
        limit: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RecommendationResult:
        """
        Recommend venues for a game.

        Args:
            query: Location text and/or coordinates
            sport: Sport to play
            when_local: Game time; None means now
            candidate_provider: Venue store queried around the resolved location
            filters: Venue type, rating and distance constraints
            limit: Maximum number of recommendations
            cancel_event: Optional event; setting it abandons the call

        Returns:
            RecommendationResult with location, weather and ranked venues

        Raises:
            InvalidInputError: If the query or sport is malformed
            UnresolvableLocationError: If the location could not be found
        """
        if not sport or not sport.strip():
            raise InvalidInputError("Sport cannot be empty")
        sport = sport.strip()
        filters = filters or VenueFilters()

        location = await self._geocoding.resolve(query, cancel_event)
        logger.info(
            "Recommending %s venues near %s (%s)",
            sport,
            location.formatted_address,
            location.source_provider.value,
        )

        weather = await self._weather.forecast_for(location.coordinates, when_local, cancel_event)

        candidates = await self._candidates_near(
            candidate_provider, location.coordinates, filters.max_distance_km
        )

        recommendations = await self._scoring.rank(
            location.coordinates,
            sport,
            when_local,
            candidates,
            filters=filters,
            limit=limit,
            cancel_event=cancel_event,
        )

        return RecommendationResult(
            location=location, weather=weather, recommendations=recommendations
        )

    async def _candidates_near(
        self, candidate_provider: CandidateProvider, coordinates: Coordinates, radius_km: float
    ) -> List[Venue]:
        try:
            return await candidate_provider.get_venues_near(coordinates, radius_km)
        except Exception as e:  # pylint: disable=broad-except
            # Gracefully degrade - no candidates rather than a failed screen
            logger.warning("Failed to fetch candidate venues: %s", str(e))
            return []

    async def weather_suggestions(
        self,
        coordinates: Coordinates,
        sport: str,
        when_local: Optional[datetime],
        candidate_provider: CandidateProvider,
        radius_km: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> WeatherSuggestions:
        """
        Best rated sheltered and open-air venues for a sport, next to the
        game-time weather so the caller can pick a side.

        Mixed venues appear in both lists; each list holds at most five venues.

        Raises:
            InvalidInputError: If the sport is blank
        """
        if not sport or not sport.strip():
            raise InvalidInputError("Sport cannot be empty")
        sport = sport.strip()
        radius_km = radius_km or settings.DEFAULT_MAX_DISTANCE_KM

        weather = await self._weather.forecast_for(coordinates, when_local, cancel_event)
        candidates = await self._candidates_near(candidate_provider, coordinates, radius_km)

        playable = sorted(
            (v for v in candidates if v.supports(sport)), key=lambda v: -v.average_rating
        )
        indoor = [v for v in playable if v.venue_type != VenueType.OUTDOOR]
        outdoor = [v for v in playable if v.venue_type != VenueType.INDOOR]

        return WeatherSuggestions(
            weather=weather,
            prefer_indoor=not weather.outdoor_friendly,
            indoor=indoor[:SUGGESTIONS_PER_GROUP],
            outdoor=outdoor[:SUGGESTIONS_PER_GROUP],
        )


# Singleton instance for dependency injection
recommendation_service = RecommendationService()
