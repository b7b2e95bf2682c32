"""
Geocoding Providers

Strategy objects for the geocoding chain. Each provider turns free text into
a ``ResolvedLocation`` (``attempt``) and, where the API supports it, turns
coordinates into a display address (``attempt_reverse``).

APIs:
- Google Geocoding: https://developers.google.com/maps/documentation/geocoding
- Nominatim (OpenStreetMap): https://nominatim.org/release-docs/latest/api/
- Zippopotam.us postal codes: https://api.zippopotam.us
"""

import logging
import re
from typing import Dict, Optional

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import ProviderError
from pickup_geo.schemas.geo import Coordinates, LocationProvider, ResolvedLocation
from pickup_geo.services.provider_chain import Found, HttpProvider, NoMatch

logger = logging.getLogger(__name__)

US_ZIP_PATTERN = re.compile(r"\b(\d{5})(?:-\d{4})?\b")

# Nominatim result types that describe an area rather than a street address
NOMINATIM_AREA_TYPES = frozenset(
    {
        "administrative",
        "city",
        "town",
        "village",
        "hamlet",
        "county",
        "state",
        "country",
        "postcode",
        "suburb",
        "neighbourhood",
    }
)


def extract_postal_code(text: str) -> Optional[str]:
    """Return the first 5-digit US ZIP code found in ``text``, if any."""
    match = US_ZIP_PATTERN.search(text or "")
    return match.group(1) if match else None


class GoogleGeocoder(HttpProvider):
    """Primary geocoder. Needs an API key; skipped when none is configured."""

    name = "google"
    source = LocationProvider.PRIMARY_GEOCODER

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(
            base_url or settings.GOOGLE_GEOCODING_API_URL,
            timeout or settings.PROVIDER_TIMEOUT_SECONDS,
        )
        self._api_key = settings.GOOGLE_GEOCODING_API_KEY if api_key is None else api_key

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _query(self, params: Dict[str, str]) -> Optional[dict]:
        """
        Call the API and return the first result, or None for zero results.

        Raises:
            ProviderError: On HTTP errors or an error status in the body
        """
        client = self._get_client()
        response = await client.get("/json", params={**params, "key": self._api_key})
        if response.status_code != 200:
            raise ProviderError(f"Google geocoding returned HTTP {response.status_code}")

        data = response.json()
        status = data.get("status")
        results = data.get("results") or []
        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            return None
        if status != "OK":
            raise ProviderError(
                f"Google geocoding status {status}: {data.get('error_message', 'no details')}"
            )
        return results[0]

    async def attempt(self, text: str):
        first = await self._query({"address": text})
        if first is None:
            return NoMatch("zero results")

        geometry = first["geometry"]
        location = geometry["location"]
        return Found(
            ResolvedLocation(
                coordinates=Coordinates(latitude=location["lat"], longitude=location["lng"]),
                formatted_address=first.get("formatted_address") or text,
                source_provider=self.source,
                precise=geometry.get("location_type") != "APPROXIMATE",
            )
        )

    async def attempt_reverse(self, coordinates: Coordinates):
        first = await self._query({"latlng": f"{coordinates.latitude},{coordinates.longitude}"})
        if first is None or not first.get("formatted_address"):
            return NoMatch("zero results")
        return Found(first["formatted_address"])


class NominatimGeocoder(HttpProvider):
    """Secondary, keyless geocoder backed by OpenStreetMap."""

    name = "nominatim"
    source = LocationProvider.SECONDARY_GEOCODER

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        enabled: Optional[bool] = None,
        user_agent: Optional[str] = None,
    ):
        super().__init__(
            base_url or settings.NOMINATIM_API_URL,
            timeout or settings.PROVIDER_TIMEOUT_SECONDS,
        )
        self._enabled = settings.NOMINATIM_ENABLED if enabled is None else enabled
        self._user_agent = user_agent or settings.NOMINATIM_USER_AGENT

    def _default_headers(self) -> dict:
        # Nominatim's usage policy requires an identifying User-Agent
        return {"Accept": "application/json", "User-Agent": self._user_agent}

    def is_configured(self) -> bool:
        return self._enabled

    @staticmethod
    def format_address(data: dict) -> str:
        """
        Build a short "123 Main St, City, State" address from a Nominatim
        result, falling back to its display name.
        """
        address = data.get("address") or {}
        parts = []
        if address.get("house_number") and address.get("road"):
            parts.append(f"{address['house_number']} {address['road']}")
        elif address.get("road"):
            parts.append(address["road"])

        locality = address.get("city") or address.get("town") or address.get("village")
        if locality:
            parts.append(locality)
        if address.get("state"):
            parts.append(address["state"])

        return ", ".join(parts) or data.get("display_name") or ""

    async def attempt(self, text: str):
        client = self._get_client()
        response = await client.get(
            "/search",
            params={"q": text, "format": "json", "limit": 1, "addressdetails": 1},
        )
        if response.status_code != 200:
            raise ProviderError(f"Nominatim search returned HTTP {response.status_code}")

        data = response.json()
        if not data:
            return NoMatch("empty result set")

        first = data[0]
        return Found(
            ResolvedLocation(
                coordinates=Coordinates(
                    latitude=float(first["lat"]), longitude=float(first["lon"])
                ),
                formatted_address=self.format_address(first) or text,
                source_provider=self.source,
                precise=first.get("type") not in NOMINATIM_AREA_TYPES,
            )
        )

    async def attempt_reverse(self, coordinates: Coordinates):
        client = self._get_client()
        response = await client.get(
            "/reverse",
            params={
                "lat": coordinates.latitude,
                "lon": coordinates.longitude,
                "format": "json",
                "addressdetails": 1,
            },
        )
        if response.status_code != 200:
            raise ProviderError(f"Nominatim reverse returned HTTP {response.status_code}")

        data = response.json()
        if not data or data.get("error"):
            return NoMatch(data.get("error", "empty result") if data else "empty result")

        address = self.format_address(data)
        if not address:
            return NoMatch("no address in result")
        return Found(address)


class PostalCodeLookup(HttpProvider):
    """
    Last-resort forward lookup: pull a ZIP code out of the text and use the
    centroid of that postal area. Results are never precise.
    """

    name = "postal_lookup"
    source = LocationProvider.POSTAL_LOOKUP

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        country_code: str = "us",
    ):
        super().__init__(
            base_url or settings.POSTAL_LOOKUP_API_URL,
            timeout or settings.PROVIDER_TIMEOUT_SECONDS,
        )
        self._country_code = country_code

    async def attempt(self, text: str):
        postal_code = extract_postal_code(text)
        if postal_code is None:
            return NoMatch("no postal code in query")

        client = self._get_client()
        response = await client.get(f"/{self._country_code}/{postal_code}")
        if response.status_code == 404:
            return NoMatch(f"unknown postal code {postal_code}")
        if response.status_code != 200:
            raise ProviderError(f"Postal lookup returned HTTP {response.status_code}")

        places = response.json().get("places") or []
        if not places:
            return NoMatch(f"no places for postal code {postal_code}")

        place = places[0]
        locality = ", ".join(
            part for part in (place.get("place name"), place.get("state abbreviation")) if part
        )
        return Found(
            ResolvedLocation(
                coordinates=Coordinates(
                    latitude=float(place["latitude"]), longitude=float(place["longitude"])
                ),
                formatted_address=f"{locality} {postal_code}".strip(),
                source_provider=self.source,
                precise=False,
            )
        )
