from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from pickup_geo.core.config import settings
from pickup_geo.db import database
from pickup_geo.db.database import get_db
from pickup_geo.schemas.health import HealthCheckResponse
from pickup_geo.services import geocoding_service, weather_service

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Health check endpoint that verifies:
    - Database connectivity
    - Geocoding provider availability
    - Weather provider availability

    Returns 200 if all services are healthy, 503 if any service is down.
    """
    database_health = database.health_check(db)
    geocoding_health = await geocoding_service.geocoding_service.health_check()
    weather_health = await weather_service.weather_service.health_check()

    overall_healthy = all(
        [database_health.healthy, geocoding_health.healthy, weather_health.healthy]
    )

    response = HealthCheckResponse(
        service="pickup-geo-backend",
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        healthy=overall_healthy,
        database=database_health,
        geocoding_service=geocoding_health,
        weather_service=weather_health,
    )

    if overall_healthy:
        return response
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response.model_dump()
    )
