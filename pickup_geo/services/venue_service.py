"""
Venue candidate providers.

The recommendation engine only reads venues. Anything that can answer
``get_venues_near(coordinates, radius_km)`` can feed it; two implementations
are provided here: the SQL venue store and a fixed in-memory list.

The SQL store also answers the read-only browsing queries (text search and
popular venues for a sport).
"""

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from pickup_geo.models.venue import Venue as VenueRecord
from pickup_geo.schemas.geo import Coordinates
from pickup_geo.schemas.venue import Venue, VenueType
from pickup_geo.utils.geo_math import bounding_box, distance_km

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
POPULAR_LIMIT = 10
# fewer ratings than this is not enough to call a venue popular
POPULAR_MIN_RATINGS = 5


class CandidateProvider(Protocol):
    """Source of candidate venues around a point."""

    async def get_venues_near(self, coordinates: Coordinates, radius_km: float) -> List[Venue]:
        ...


def venue_from_record(record: VenueRecord) -> Venue:
    """
    Convert a stored venue row into the read-only Venue schema.
    """
    return Venue(
        id=str(record.id),
        name=record.name,
        address=record.address,
        coordinates=Coordinates(latitude=record.latitude, longitude=record.longitude),
        venue_type=VenueType(str(record.venue_type).upper()),
        supported_sports=list(record.supported_sports or []),
        average_rating=record.average_rating or 0.0,
        total_ratings=record.total_ratings or 0,
    )


class SqlVenueRepository:
    """Candidate provider and venue browser over the ``venues`` table."""

    def __init__(self, db: Session):
        self.db = db

    def _to_venues(self, records: Sequence[VenueRecord]) -> List[Venue]:
        venues = []
        for record in records:
            try:
                venues.append(venue_from_record(record))
            except ValueError as e:
                logger.warning("Skipping malformed venue %s: %s", record.id, str(e))
        return venues

    def find_near(self, coordinates: Coordinates, radius_km: float) -> List[Venue]:
        """
        Get venues within ``radius_km`` of a point, best rated first.

        A bounding box narrows the query; exact distances trim the corners.
        """
        min_lat, max_lat, min_lon, max_lon = bounding_box(coordinates, radius_km)
        records = (
            self.db.query(VenueRecord)
            .filter(VenueRecord.latitude >= min_lat)
            .filter(VenueRecord.latitude <= max_lat)
            .filter(VenueRecord.longitude >= min_lon)
            .filter(VenueRecord.longitude <= max_lon)
            .order_by(VenueRecord.average_rating.desc())
            .all()
        )
        return [
            venue
            for venue in self._to_venues(records)
            if distance_km(coordinates, venue.coordinates) <= radius_km
        ]

    async def get_venues_near(self, coordinates: Coordinates, radius_km: float) -> List[Venue]:
        return self.find_near(coordinates, radius_km)

    def search(
        self,
        text: str = "",
        near: Optional[Coordinates] = None,
        venue_type: Optional[VenueType] = None,
        sport: Optional[str] = None,
        min_rating: float = 0.0,
        max_distance_km: Optional[float] = None,
        limit: int = SEARCH_LIMIT,
    ) -> List[Venue]:
        """
        Search venues by name or address, best rated first.

        Args:
            text: Case-insensitive substring of the name or address; blank
                matches every venue
            near: Reference point for ``max_distance_km``
            venue_type: Only venues of this type
            sport: Only venues supporting this sport
            min_rating: Minimum average rating
            max_distance_km: Only applied together with ``near``
            limit: Maximum number of venues

        Returns:
            Matching venues
        """
        query = self.db.query(VenueRecord)

        text = (text or "").strip()
        if text:
            pattern = f"%{text}%"
            query = query.filter(
                or_(VenueRecord.name.ilike(pattern), VenueRecord.address.ilike(pattern))
            )
        if venue_type is not None:
            query = query.filter(func.upper(VenueRecord.venue_type) == venue_type.value)
        if min_rating:
            query = query.filter(VenueRecord.average_rating >= min_rating)

        records = query.order_by(VenueRecord.average_rating.desc()).all()

        venues = []
        for venue in self._to_venues(records):
            # supported_sports is JSON, matched here to stay database agnostic
            if sport and not venue.supports(sport):
                continue
            if (
                near is not None
                and max_distance_km is not None
                and distance_km(near, venue.coordinates) > max_distance_km
            ):
                continue
            venues.append(venue)
        return venues[: max(limit, 0)]

    def popular(
        self,
        sport: str,
        limit: int = POPULAR_LIMIT,
        min_ratings: int = POPULAR_MIN_RATINGS,
    ) -> List[Venue]:
        """
        Get the best rated venues for a sport among venues with at least
        ``min_ratings`` ratings. Ties go to the venue with more ratings.
        """
        records = (
            self.db.query(VenueRecord)
            .filter(VenueRecord.total_ratings >= min_ratings)
            .order_by(VenueRecord.average_rating.desc(), VenueRecord.total_ratings.desc())
            .all()
        )
        venues = [venue for venue in self._to_venues(records) if venue.supports(sport)]
        return venues[: max(limit, 0)]


class StaticVenueProvider:
    """Candidate provider over a fixed list of venues."""

    def __init__(self, venues: Iterable[Venue]):
        self._venues = list(venues)

    async def get_venues_near(self, coordinates: Coordinates, radius_km: float) -> List[Venue]:
        return [v for v in self._venues if distance_km(coordinates, v.coordinates) <= radius_km]
