from fastapi import APIRouter

from pickup_geo.api.v1.endpoints import health, locations, recommendations, venues, weather

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(weather.router, prefix="/weather", tags=["weather"])
api_router.include_router(venues.router, prefix="/venues", tags=["venues"])
api_router.include_router(
    recommendations.router, prefix="/recommendations", tags=["recommendations"]
)
