"""
Recommendation Request/Response Schemas

Pydantic models for the recommendation facade and its API endpoint.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pickup_geo.schemas.geo import Coordinates, LocationQuery, ResolvedLocation
from pickup_geo.schemas.venue import Venue, VenueFilters, VenueRecommendation
from pickup_geo.schemas.weather import WeatherSnapshot


class RecommendationRequest(BaseModel):
    """Request schema for the venue recommendation endpoint."""

    query: LocationQuery = Field(..., description="Where the game should happen")
    sport: str = Field(..., description="Sport to play, e.g. 'basketball'")
    when: Optional[datetime] = Field(
        None, description="Game time (ISO format). Defaults to now if not provided."
    )
    filters: VenueFilters = Field(default_factory=VenueFilters)
    limit: Optional[int] = Field(
        None, ge=1, le=100, description="Maximum number of recommendations to return"
    )


class RecommendationResult(BaseModel):
    """Resolved location, weather at that location and the ranked venues."""

    location: ResolvedLocation
    weather: WeatherSnapshot
    recommendations: List[VenueRecommendation]


class WeatherSuggestionsRequest(BaseModel):
    """Request schema for weather-based venue suggestions."""

    coordinates: Coordinates = Field(..., description="Where the players are")
    sport: str = Field(..., description="Sport to play, e.g. 'basketball'")
    when: Optional[datetime] = Field(
        None, description="Game time (ISO format). Defaults to now if not provided."
    )
    radius_km: Optional[float] = Field(
        None, gt=0.0, le=200.0, description="Search radius; the default distance if omitted"
    )


class WeatherSuggestions(BaseModel):
    """Best rated sheltered and open-air venues next to the game-time weather."""

    weather: WeatherSnapshot
    prefer_indoor: bool = Field(
        ..., description="True when the weather does not suit outdoor play"
    )
    indoor: List[Venue] = Field(default_factory=list, description="Indoor and mixed venues")
    outdoor: List[Venue] = Field(default_factory=list, description="Outdoor and mixed venues")
