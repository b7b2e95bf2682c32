from sqlalchemy import JSON, Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from pickup_geo.db.database import Base


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    venue_type = Column(String, nullable=False)
    supported_sports = Column(JSON, nullable=False, default=list)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_ratings = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __init__(
        self,
        id,
        name,
        latitude,
        longitude,
        venue_type,
        supported_sports=None,
        average_rating=0.0,
        total_ratings=0,
        address=None,
    ):
        self.id = id
        self.name = name
        self.latitude = latitude
        self.longitude = longitude
        self.venue_type = venue_type
        self.supported_sports = supported_sports or []
        self.average_rating = average_rating
        self.total_ratings = total_ratings
        self.address = address
