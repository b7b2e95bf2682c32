"""
Venue Schemas

Pydantic models for candidate venues, ranking filters and recommendations.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pickup_geo.core.config import settings
from pickup_geo.schemas.geo import Coordinates


class VenueType(str, Enum):
    """Whether play at a venue is exposed to the weather."""

    INDOOR = "INDOOR"
    OUTDOOR = "OUTDOOR"
    MIXED = "MIXED"


class Venue(BaseModel):
    """A candidate venue supplied by the venue store."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    address: Optional[str] = None
    coordinates: Coordinates
    venue_type: VenueType
    supported_sports: List[str] = Field(default_factory=list)
    average_rating: float = Field(0.0, ge=0.0, le=5.0)
    total_ratings: int = Field(0, ge=0)

    def supports(self, sport: str) -> bool:
        wanted = sport.strip().lower()
        return any(s.strip().lower() == wanted for s in self.supported_sports)


class VenueFilters(BaseModel):
    """Optional constraints applied before scoring."""

    venue_type: Optional[VenueType] = Field(None, description="Only keep venues of this type")
    min_rating: float = Field(0.0, ge=0.0, le=5.0, description="Minimum average rating")
    max_distance_km: float = Field(
        default=settings.DEFAULT_MAX_DISTANCE_KM,
        gt=0.0,
        description="Venues farther than this are excluded",
    )


class VenueRecommendation(BaseModel):
    """A venue with its distance, score and the reasons it was picked."""

    venue: Venue
    distance_km: float
    score: float = Field(..., ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list, max_length=3)
