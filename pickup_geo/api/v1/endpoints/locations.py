"""
Locations API Endpoint

Resolves free-text locations and GPS coordinates to a normalized location.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from pickup_geo.core.exceptions import InvalidInputError, UnresolvableLocationError
from pickup_geo.schemas.geo import LocationQuery, ResolvedLocation
from pickup_geo.services.geocoding_service import geocoding_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/resolve", response_model=ResolvedLocation)
async def resolve_location(query: LocationQuery):
    """
    Resolve an address, place name, postal code or coordinates.

    Coordinates-only queries always succeed; when no address can be found
    the coordinates themselves are used as the address.
    """
    logger.info("Location resolve request: text=%r, coordinates=%s", query.text, query.coordinates)

    try:
        return await geocoding_service.resolve(query)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UnresolvableLocationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
