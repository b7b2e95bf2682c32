"""
Location and Coordinate Type Definitions

Pydantic models for representing geographic coordinates and resolved
locations used throughout the application.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """
    Geographic coordinates (latitude and longitude).

    Immutable and hashable so it can key memo tables; equality is exact.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")

    def as_label(self) -> str:
        """Human readable fallback used when no address is known."""
        return f"{self.latitude:.4f}, {self.longitude:.4f}"

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


class LocationProvider(str, Enum):
    """Which step of the geocoding chain produced a location."""

    PRIMARY_GEOCODER = "PRIMARY_GEOCODER"
    SECONDARY_GEOCODER = "SECONDARY_GEOCODER"
    POSTAL_LOOKUP = "POSTAL_LOOKUP"
    RAW_COORDINATES = "RAW_COORDINATES"


class LocationQuery(BaseModel):
    """A free-text location description, GPS coordinates, or both."""

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = Field(None, description="Address, place name or postal code")
    coordinates: Optional[Coordinates] = Field(None, description="GPS coordinates")


class ResolvedLocation(BaseModel):
    """Normalized result of a location resolution request."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    formatted_address: str
    source_provider: LocationProvider
    precise: bool = Field(
        ..., description="False when the result is a centroid rather than a street-level match"
    )
