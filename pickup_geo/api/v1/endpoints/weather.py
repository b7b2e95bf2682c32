"""
Weather API Endpoint

Game-time weather for a venue, with an outdoor suitability judgment.
"""

from fastapi import APIRouter

from pickup_geo.schemas.weather import WeatherForecastRequest, WeatherForecastResponse
from pickup_geo.services.weather_service import weather_recommendation, weather_service

router = APIRouter()


@router.post("/forecast", response_model=WeatherForecastResponse)
async def get_forecast(request: WeatherForecastRequest):
    """
    Get the weather for coordinates at a game time.

    Never fails: when no weather data is available a labelled placeholder is
    returned (see ``weather.source`` and ``weather.alerts``).
    """
    snapshot = await weather_service.forecast_for(request.coordinates, request.when)
    return WeatherForecastResponse(
        weather=snapshot, recommendation=weather_recommendation(snapshot)
    )
