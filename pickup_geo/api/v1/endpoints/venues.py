"""
Venues API Endpoint

Read-only browsing of the stored venues: nearby, text search, popular venues
for a sport and weather-based suggestions.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import InvalidInputError
from pickup_geo.db.database import get_db
from pickup_geo.schemas.geo import Coordinates
from pickup_geo.schemas.recommendation import WeatherSuggestions, WeatherSuggestionsRequest
from pickup_geo.schemas.venue import Venue, VenueType
from pickup_geo.services.recommendation_service import recommendation_service
from pickup_geo.services.venue_service import (
    POPULAR_LIMIT,
    SEARCH_LIMIT,
    SqlVenueRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/nearby", response_model=List[Venue])
async def get_nearby_venues(
    latitude: float = Query(..., ge=-90.0, le=90.0),
    longitude: float = Query(..., ge=-180.0, le=180.0),
    radius_km: float = Query(settings.DEFAULT_MAX_DISTANCE_KM, gt=0.0, le=200.0),
    db: Session = Depends(get_db),
) -> Any:
    """
    Get stored venues within ``radius_km`` of a point, best rated first.
    """
    center = Coordinates(latitude=latitude, longitude=longitude)
    return SqlVenueRepository(db).find_near(center, radius_km)


@router.get("/search", response_model=List[Venue])
async def search_venues(
    q: str = Query("", description="Text to match in the venue name or address"),
    latitude: Optional[float] = Query(None, ge=-90.0, le=90.0),
    longitude: Optional[float] = Query(None, ge=-180.0, le=180.0),
    venue_type: Optional[VenueType] = Query(None),
    sport: Optional[str] = Query(None),
    min_rating: float = Query(0.0, ge=0.0, le=5.0),
    max_distance_km: Optional[float] = Query(None, gt=0.0, le=200.0),
    limit: int = Query(SEARCH_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
) -> Any:
    """
    Search stored venues, best rated first.

    The distance filter only applies when both latitude and longitude are given.

    Raises:
        HTTPException: 400 if only one of latitude and longitude is given
    """
    if (latitude is None) != (longitude is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="latitude and longitude must be given together",
        )

    near = None
    if latitude is not None:
        near = Coordinates(latitude=latitude, longitude=longitude)

    return SqlVenueRepository(db).search(
        text=q,
        near=near,
        venue_type=venue_type,
        sport=sport,
        min_rating=min_rating,
        max_distance_km=max_distance_km,
        limit=limit,
    )


@router.get("/popular", response_model=List[Venue])
async def get_popular_venues(
    sport: str = Query(..., min_length=1),
    limit: int = Query(POPULAR_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
) -> Any:
    """
    Get the best rated, well reviewed venues for a sport.
    """
    return SqlVenueRepository(db).popular(sport, limit=limit)


@router.post("/suggestions", response_model=WeatherSuggestions)
async def suggest_venues(
    request: WeatherSuggestionsRequest,
    db: Session = Depends(get_db),
):
    """
    Suggest indoor and outdoor venues for a sport next to the game-time weather.

    Raises:
        HTTPException: 400 for a blank sport
    """
    logger.info(
        "Weather suggestions request: sport=%s, coordinates=%s",
        request.sport,
        request.coordinates,
    )

    when_local = request.when or datetime.now(timezone.utc)

    try:
        return await recommendation_service.weather_suggestions(
            request.coordinates,
            request.sport,
            when_local,
            SqlVenueRepository(db),
            radius_km=request.radius_km,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
