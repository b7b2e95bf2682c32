from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from pickup_geo.core.exceptions import InvalidInputError, UnresolvableLocationError
from pickup_geo.schemas.geo import Coordinates, LocationProvider, LocationQuery, ResolvedLocation

RESOLVE = "pickup_geo.api.v1.endpoints.locations.geocoding_service.resolve"


def test_resolve_text(client: TestClient):
    location = ResolvedLocation(
        coordinates=Coordinates(latitude=29.6516, longitude=-82.3248),
        formatted_address="Gainesville, FL, USA",
        source_provider=LocationProvider.PRIMARY_GEOCODER,
        precise=False,
    )

    with patch(RESOLVE, new_callable=AsyncMock, return_value=location) as mock_resolve:
        response = client.post("/api/v1/locations/resolve", json={"text": "Gainesville"})

    assert response.status_code == 200
    data = response.json()
    assert data["formatted_address"] == "Gainesville, FL, USA"
    assert data["source_provider"] == "PRIMARY_GEOCODER"
    assert data["precise"] is False
    assert data["coordinates"] == {"latitude": 29.6516, "longitude": -82.3248}
    mock_resolve.assert_awaited_once_with(LocationQuery(text="Gainesville"))


def test_resolve_empty_query_is_bad_request(client: TestClient):
    with patch(
        RESOLVE,
        new_callable=AsyncMock,
        side_effect=InvalidInputError("A location query needs text or coordinates"),
    ):
        response = client.post("/api/v1/locations/resolve", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "A location query needs text or coordinates"


def test_resolve_unknown_location_is_not_found(client: TestClient):
    with patch(
        RESOLVE,
        new_callable=AsyncMock,
        side_effect=UnresolvableLocationError("Location could not be found: 'xyzzy'"),
    ):
        response = client.post("/api/v1/locations/resolve", json={"text": "xyzzy"})

    assert response.status_code == 404


def test_resolve_rejects_out_of_range_coordinates(client: TestClient):
    response = client.post(
        "/api/v1/locations/resolve",
        json={"coordinates": {"latitude": 91.0, "longitude": 0.0}},
    )

    assert response.status_code == 422
