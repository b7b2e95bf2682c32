import os
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pickup_geo.db.database import Base, get_db
from pickup_geo.main import app
from pickup_geo.models.venue import Venue as VenueRecord

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Test database URL - using SQLite for tests is simpler
SQLALCHEMY_DATABASE_TEST_URL = "sqlite:///:memory:"

test_engine = create_engine(
    SQLALCHEMY_DATABASE_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine
)


@pytest.fixture(scope="function")
def db():
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db):
    """Provides a FastAPI test client with test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Cleanup handled by db fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    # Clean up overrides after test
    app.dependency_overrides.clear()


@pytest.fixture
def gainesville_venues(db):
    """A few stored venues around the UF campus in Gainesville, FL."""
    records = [
        VenueRecord(
            id="student-rec-center",
            name="Student Recreation & Fitness Center",
            address="1 Fletcher Dr, Gainesville, FL 32611",
            latitude=29.6499,
            longitude=-82.3486,
            venue_type="INDOOR",
            supported_sports=["basketball", "volleyball", "badminton"],
            average_rating=4.7,
            total_ratings=120,
        ),
        VenueRecord(
            id="turlington-plaza",
            name="Turlington Plaza",
            address="Turlington Plaza, Gainesville, FL 32611",
            latitude=29.6502,
            longitude=-82.3438,
            venue_type="OUTDOOR",
            supported_sports=["basketball", "frisbee"],
            average_rating=4.1,
            total_ratings=35,
        ),
        VenueRecord(
            id="flavet-field",
            name="Flavet Field",
            address="Flavet Field, Gainesville, FL 32611",
            latitude=29.6494,
            longitude=-82.3503,
            venue_type="OUTDOOR",
            supported_sports=["soccer", "football"],
            average_rating=4.3,
            total_ratings=60,
        ),
        VenueRecord(
            id="orlando-courts",
            name="Downtown Orlando Courts",
            latitude=28.5383,
            longitude=-81.3792,
            venue_type="OUTDOOR",
            supported_sports=["basketball"],
            average_rating=4.9,
            total_ratings=200,
        ),
    ]
    db.add_all(records)
    db.commit()
    return records
