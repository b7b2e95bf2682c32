"""
Recommendations API Endpoint

Ranks nearby venues for a pickup game, taking distance, ratings and the
game-time weather into account.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pickup_geo.core.exceptions import InvalidInputError, UnresolvableLocationError
from pickup_geo.db.database import get_db
from pickup_geo.schemas.recommendation import RecommendationRequest, RecommendationResult
from pickup_geo.services.recommendation_service import recommendation_service
from pickup_geo.services.venue_service import SqlVenueRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecommendationResult)
async def recommend_venues(
    request: RecommendationRequest,
    db: Session = Depends(get_db),
):
    """
    Recommend venues for a game.

    Args:
        request: Location query, sport, game time, filters and limit
        db: Database session

    Returns:
        RecommendationResult with the resolved location, weather and venues

    Raises:
        HTTPException: 400 for malformed input, 404 if the location is unknown
    """
    logger.info(
        "Recommendation request: sport=%s, text=%r, coordinates=%s, filters=%s",
        request.sport,
        request.query.text,
        request.query.coordinates,
        request.filters.model_dump(),
    )

    when_local = request.when or datetime.now(timezone.utc)

    try:
        return await recommendation_service.recommend(
            request.query,
            request.sport,
            when_local,
            SqlVenueRepository(db),
            filters=request.filters,
            limit=request.limit,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UnresolvableLocationError as e:
        logger.warning("Location could not be found: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Location could not be found"
        ) from e
