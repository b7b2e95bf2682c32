"""
Geocoding Service

Resolves a free-text location or GPS coordinates into a ``ResolvedLocation``
by walking an ordered chain of geocoding providers.

Forward (text) chain: Google -> Nominatim -> postal code centroid, then the
raw coordinates if the caller supplied any.
Reverse (coordinates) chain: Google -> Nominatim, then the coordinates
rendered as "lat, lng". The reverse path never fails.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from pickup_geo.core.config import settings
from pickup_geo.core.exceptions import InvalidInputError, UnresolvableLocationError
from pickup_geo.schemas.geo import (
    Coordinates,
    LocationProvider,
    LocationQuery,
    ResolvedLocation,
)
from pickup_geo.schemas.health import ServiceHealth
from pickup_geo.services.geocoding_providers import (
    GoogleGeocoder,
    NominatimGeocoder,
    PostalCodeLookup,
)
from pickup_geo.services.provider_chain import ProviderChain
from pickup_geo.utils.concurrency import SingleFlight
from pickup_geo.utils.geo_math import distance_km

logger = logging.getLogger(__name__)


class GeocodingService:
    """
    Location resolution over interchangeable provider strategies.

    Providers can be injected for testing; by default the configured Google,
    Nominatim and postal lookups are used.
    """

    def __init__(
        self,
        forward_providers: Optional[Sequence] = None,
        reverse_providers: Optional[Sequence] = None,
        timeout: Optional[float] = None,
        single_flight: Optional[SingleFlight] = None,
        max_hint_distance_km: Optional[float] = None,
    ):
        if forward_providers is None or reverse_providers is None:
            google = GoogleGeocoder()
            nominatim = NominatimGeocoder()
            if forward_providers is None:
                forward_providers = [google, nominatim, PostalCodeLookup()]
            if reverse_providers is None:
                reverse_providers = [google, nominatim]

        self.forward_providers: List = list(forward_providers)
        self.reverse_providers: List = list(reverse_providers)
        self._chain = ProviderChain(
            "geocode", timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS
        )
        self._reverse_chain = ProviderChain("reverse geocode", self._chain.timeout)
        self._single_flight = single_flight or SingleFlight(
            settings.INFLIGHT_DEDUP_SECONDS, settings.RESPONSE_CACHE_MAX_ENTRIES
        )
        self._max_hint_distance_km = (
            max_hint_distance_km
            if max_hint_distance_km is not None
            else settings.MAX_QUERY_HINT_DISTANCE_KM
        )

    async def resolve(
        self, query: LocationQuery, cancel_event: Optional[asyncio.Event] = None
    ) -> ResolvedLocation:
        """
        Resolve a location query.

        Args:
            query: Free text, coordinates, or both
            cancel_event: Optional event; setting it abandons the call

        Returns:
            ResolvedLocation for the query

        Raises:
            InvalidInputError: If the query has neither usable text nor coordinates
            UnresolvableLocationError: If text could not be resolved by any provider
                and no coordinates were supplied
        """
        text = (query.text or "").strip()
        coordinates = query.coordinates

        if coordinates is None:
            if query.text is None:
                raise InvalidInputError("A location query needs text or coordinates")
            if not text:
                raise InvalidInputError("Location text cannot be empty")

        key = ("resolve", text.lower(), coordinates)
        return await self._single_flight.do(
            key, lambda: self._resolve(text, coordinates), cancel_event
        )

    async def _resolve(self, text: str, coordinates: Optional[Coordinates]) -> ResolvedLocation:
        if not text:
            return await self._reverse(coordinates)

        def near_hint(location: ResolvedLocation) -> Optional[str]:
            if coordinates is None:
                return None
            gap = distance_km(coordinates, location.coordinates)
            if gap > self._max_hint_distance_km:
                logger.warning(
                    "Discarding geocode for '%s': %.0f km from the supplied coordinates",
                    text,
                    gap,
                )
                return f"{gap:.0f} km from supplied coordinates"
            return None

        result = await self._chain.run(self.forward_providers, text, accept=near_hint)
        if result.found:
            return result.value

        if coordinates is not None:
            logger.warning("Falling back to raw coordinates %s for '%s'", coordinates, text)
            return ResolvedLocation(
                coordinates=coordinates,
                formatted_address=coordinates.as_label(),
                source_provider=LocationProvider.RAW_COORDINATES,
                precise=False,
            )

        raise UnresolvableLocationError(f"Location could not be found: '{text}'")

    async def _reverse(self, coordinates: Coordinates) -> ResolvedLocation:
        result = await self._reverse_chain.run(
            self.reverse_providers, coordinates, method_name="attempt_reverse"
        )
        if result.found:
            return ResolvedLocation(
                coordinates=coordinates,
                formatted_address=result.value,
                source_provider=result.provider.source,
                precise=True,
            )

        return ResolvedLocation(
            coordinates=coordinates,
            formatted_address=coordinates.as_label(),
            source_provider=LocationProvider.RAW_COORDINATES,
            precise=True,
        )

    async def health_check(self) -> ServiceHealth:
        """
        The service is usable as long as one forward provider is configured.
        """
        configured = [
            p.name for p in self.forward_providers if getattr(p, "is_configured", lambda: True)()
        ]
        if configured:
            return ServiceHealth(
                healthy=True, message=f"Geocoding providers available: {', '.join(configured)}"
            )
        return ServiceHealth(healthy=False, message="No geocoding provider is configured")

    async def close(self):
        seen = set()
        for provider in [*self.forward_providers, *self.reverse_providers]:
            if id(provider) in seen:
                continue
            seen.add(id(provider))
            close = getattr(provider, "close", None)
            if callable(close):
                await close()


# Singleton instance for dependency injection
geocoding_service = GeocodingService()
