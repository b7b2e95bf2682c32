"""
Venue Scoring Service

Ranks candidate venues for a game by a weighted score of distance, rating,
weather fit and popularity, and explains each pick with short reasons.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pickup_geo.schemas.geo import Coordinates
from pickup_geo.schemas.venue import Venue, VenueFilters, VenueRecommendation, VenueType
from pickup_geo.schemas.weather import WeatherSnapshot, WeatherSource
from pickup_geo.services.weather_service import WeatherService, weather_service
from pickup_geo.utils.geo_math import distance_km, format_distance

logger = logging.getLogger(__name__)

MAX_REASONS = 3
# a term has to reach this value before it is worth explaining
REASON_THRESHOLD = 0.5


class ScoringConfig(BaseModel):
    """Tunable weights and constants for venue scoring, shared by every screen."""

    model_config = ConfigDict(frozen=True)

    distance_weight: float = Field(0.35, ge=0.0, le=1.0)
    rating_weight: float = Field(0.30, ge=0.0, le=1.0)
    weather_weight: float = Field(0.25, ge=0.0, le=1.0)
    popularity_weight: float = Field(0.10, ge=0.0, le=1.0)
    poor_weather_fit: float = Field(0.2, ge=0.0, le=1.0)
    popularity_cap: int = Field(50, ge=1)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        total = (
            self.distance_weight + self.rating_weight + self.weather_weight + self.popularity_weight
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1, got {total}")
        return self


DEFAULT_SCORING = ScoringConfig()


def _distance_reason(term: float, km: float) -> Optional[str]:
    if term >= 0.8:
        return "Close to you"
    if term >= REASON_THRESHOLD:
        return f"Within {format_distance(km)}"
    return None


def _rating_reason(venue: Venue) -> Optional[str]:
    if venue.average_rating >= 4.5:
        return "Highly rated"
    if venue.average_rating >= 3.5:
        return "Well rated by players"
    if venue.average_rating >= 2.5:
        return "Decent ratings"
    return None


def _weather_reason(venue: Venue, weather: Optional[WeatherSnapshot]) -> Optional[str]:
    if venue.venue_type == VenueType.INDOOR:
        return "Weather-protected indoor venue"
    if venue.venue_type == VenueType.MIXED:
        return "Flexible indoor/outdoor options"
    if weather is not None and weather.source == WeatherSource.PLACEHOLDER:
        return "Weather not verified"
    if weather is not None and weather.outdoor_friendly:
        return "Good weather for outdoor play"
    return None


class VenueScoringService:
    """
    Stateless ranking of externally supplied venues.

    Weather is fetched through the injected weather service, at most once per
    distinct outdoor venue location per ``rank`` call.
    """

    def __init__(
        self,
        weather: Optional[WeatherService] = None,
        config: ScoringConfig = DEFAULT_SCORING,
    ):
        self._weather = weather or weather_service
        self.config = config

    def _passes_filters(
        self, venue: Venue, sport: str, km: float, filters: VenueFilters
    ) -> bool:
        if not venue.supports(sport):
            return False
        if km > filters.max_distance_km:
            return False
        if venue.average_rating < filters.min_rating:
            return False
        if filters.venue_type is not None and venue.venue_type != filters.venue_type:
            return False
        return True

    async def _weather_by_location(
        self,
        venues: Sequence[Venue],
        when_local: Optional[datetime],
        cancel_event: Optional[asyncio.Event],
    ) -> Dict[Coordinates, WeatherSnapshot]:
        locations = list(
            dict.fromkeys(v.coordinates for v in venues if v.venue_type == VenueType.OUTDOOR)
        )
        if not locations:
            return {}

        snapshots = await asyncio.gather(
            *(self._weather.forecast_for(c, when_local, cancel_event) for c in locations)
        )
        return dict(zip(locations, snapshots))

    def score(
        self,
        venue: Venue,
        km: float,
        max_distance_km: float,
        weather: Optional[WeatherSnapshot],
    ) -> Tuple[float, List[str]]:
        """
        Weighted score in [0, 1] and up to three reasons for one venue.

        A missing snapshot for an outdoor venue counts as unsuitable weather.
        """
        cfg = self.config

        distance_term = max(0.0, 1.0 - km / max_distance_km)
        rating_term = venue.average_rating / 5.0
        if venue.venue_type != VenueType.OUTDOOR:
            weather_term = 1.0
        elif weather is not None and weather.outdoor_friendly:
            weather_term = 1.0
        else:
            weather_term = cfg.poor_weather_fit
        popularity_term = min(venue.total_ratings, cfg.popularity_cap) / cfg.popularity_cap

        contributions = [
            (cfg.distance_weight * distance_term, distance_term, _distance_reason(distance_term, km)),
            (cfg.rating_weight * rating_term, rating_term, _rating_reason(venue)),
            (cfg.weather_weight * weather_term, weather_term, _weather_reason(venue, weather)),
            (
                cfg.popularity_weight * popularity_term,
                popularity_term,
                "Popular with players" if popularity_term >= REASON_THRESHOLD else None,
            ),
        ]

        total = min(1.0, max(0.0, sum(weighted for weighted, _, _ in contributions)))

        # sorted() is stable, so equal contributions keep the weight order above
        reasons = [
            reason
            for weighted, term, reason in sorted(contributions, key=lambda c: -c[0])
            if reason and term >= REASON_THRESHOLD
        ][:MAX_REASONS]
        return total, reasons

    async def rank(
        self,
        origin: Coordinates,
        sport: str,
        when_local: Optional[datetime],
        candidates: Sequence[Venue],
        filters: Optional[VenueFilters] = None,
        limit: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[VenueRecommendation]:
        """
        Rank candidate venues for a game.

        Args:
            origin: Where the players are coming from
            sport: Sport to play; matched case-insensitively
            when_local: Game time, used for outdoor weather
            candidates: Venues to consider; never modified
            filters: Type, rating and distance constraints
            limit: Return at most this many recommendations
            cancel_event: Optional event; setting it abandons the weather lookups

        Returns:
            Recommendations ordered by score (desc), distance (asc), rating (desc).
            An empty list when nothing qualifies.
        """
        filters = filters or VenueFilters()

        eligible: List[Tuple[Venue, float]] = []
        for venue in candidates:
            km = distance_km(origin, venue.coordinates)
            if self._passes_filters(venue, sport, km, filters):
                eligible.append((venue, km))

        if not eligible:
            logger.info("No %s venues qualify near %s", sport, origin)
            return []

        weather = await self._weather_by_location(
            [venue for venue, _ in eligible], when_local, cancel_event
        )

        recommendations = []
        for venue, km in eligible:
            total, reasons = self.score(
                venue, km, filters.max_distance_km, weather.get(venue.coordinates)
            )
            recommendations.append(
                VenueRecommendation(venue=venue, distance_km=km, score=total, reasons=reasons)
            )

        recommendations.sort(key=lambda r: (-r.score, r.distance_km, -r.venue.average_rating))
        if limit is not None:
            recommendations = recommendations[: max(limit, 0)]

        logger.info(
            "Ranked %d of %d %s venues near %s", len(recommendations), len(candidates), sport, origin
        )
        return recommendations


# Singleton instance for dependency injection
venue_scoring_service = VenueScoringService()
