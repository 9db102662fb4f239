"""
DevCamper API — Abstract Geocoder Interface
============================================

What:  Abstract base class defining the contract for geocoding providers,
       plus the provider-neutral `GeoLocation` result.
Why:   The bootcamp service only needs "address in, coordinates out". The
       provider (MapQuest today) can be swapped without touching callers,
       and tests substitute a fake geocoder.
Who:   BootcampService (create/update with an address, radius search).
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class GeoLocation(BaseModel):
    """Normalized geocoding result, stored flat on the bootcamp row."""

    latitude: float
    longitude: float
    formatted_address: str
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class Geocoder(ABC):
    """
    Contract:
        - geocode() returns the best match for a free-form address or zipcode
        - an address with no match raises ValidationError (client can fix it)
        - provider failures raise GeocoderError / CircuitBreakerOpenError
    """

    @abstractmethod
    async def geocode(self, address: str) -> GeoLocation:
        """
        Resolve an address (or a bare zipcode) to a location.

        Raises:
            ValidationError: The provider found nothing for the address.
            GeocoderError: The provider failed after all retries.
            CircuitBreakerOpenError: Too many recent failures.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is configured and accepting calls."""
        ...
