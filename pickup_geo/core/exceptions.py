"""
Error taxonomy for location resolution, weather lookup and recommendations.

Only InvalidInputError and UnresolvableLocationError are meant to reach
callers of the recommendation facade; provider errors are absorbed by the
fallback chains.
"""


class PickupGeoError(Exception):
    """Base exception for all pickup_geo errors."""


class InvalidInputError(PickupGeoError, ValueError):
    """Raised for malformed input, before any network call is made."""


class UnresolvableLocationError(PickupGeoError):
    """Raised when every geocoding provider failed or found nothing."""


class ProviderError(PickupGeoError):
    """Raised by an external provider call that failed."""


class CoordinatesRejectedError(ProviderError):
    """Raised when a provider refuses the coordinates it was given."""


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call did not finish within its timeout."""
