"""Reverse geocoding of GPS coordinates through Nominatim (geopy)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from geopy.adapters import AioHTTPAdapter
from geopy.extra.rate_limiter import AsyncRateLimiter
from geopy.geocoders import Nominatim

import config
from models.location_models import GeocodedPlace

LOGGER = logging.getLogger(__name__)


def _first(address: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def place_from_nominatim(raw: Optional[Dict[str, Any]]) -> GeocodedPlace:
    """Map a raw Nominatim reverse result to a GeocodedPlace.

    Args:
        raw: The `raw` dict of a geopy Location (may be None or partial).

    Returns:
        The place; fields Nominatim did not provide are None.
    """
    if not raw:
        return GeocodedPlace()
    address = raw.get("address") or {}
    return GeocodedPlace(
        city=_first(address, "city", "town", "village", "municipality"),
        district=_first(address, "city_district", "suburb", "borough"),
        neighborhood=_first(address, "neighbourhood", "quarter"),
        state=_first(address, "state", "region"),
        country=_first(address, "country"),
        formatted_address=_first(raw, "display_name"),
    )


class ReverseGeocoder:
    """Turn coordinates into a place name using the public Nominatim service.

    One geolocator and one rate limiter are shared by every session, so the
    whole process stays within Nominatim's request rate.
    """

    def __init__(
        self,
        user_agent: str = config.GEOCODER_USER_AGENT,
        timeout: float = config.GEOCODER_TIMEOUT_SECONDS,
        language: str = "en",
        min_delay_seconds: float = config.GEOCODER_MIN_DELAY_SECONDS,
        geolocator: Any = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.language = language
        self.min_delay_seconds = min_delay_seconds
        self._geolocator = geolocator
        self._owns_geolocator = geolocator is None
        self._reverse: Optional[AsyncRateLimiter] = None

    def _lazy_init(self) -> AsyncRateLimiter:
        if self._reverse is None:
            if self._geolocator is None:
                # The aiohttp session behind the adapter is created on first request.
                self._geolocator = Nominatim(
                    user_agent=self.user_agent,
                    timeout=self.timeout,
                    adapter_factory=AioHTTPAdapter,
                )
            self._reverse = AsyncRateLimiter(
                self._geolocator.reverse,
                min_delay_seconds=self.min_delay_seconds,
                error_wait_seconds=max(self.min_delay_seconds, 1.0),
                max_retries=0,
                swallow_exceptions=False,
            )
        return self._reverse

    async def reverse(self, latitude: float, longitude: float) -> Optional[GeocodedPlace]:
        """Return the place at the coordinates, or None when nothing was found.

        Raises:
            geopy.exc.GeopyError: On transport or service errors.
        """
        reverse = self._lazy_init()
        result = await reverse(
            (latitude, longitude),
            exactly_one=True,
            language=self.language,
            addressdetails=True,
        )
        if result is None:
            return None
        LOGGER.debug("Reverse geocode for %s,%s: %s", latitude, longitude, result.address)
        return place_from_nominatim(getattr(result, "raw", None))

    async def close(self) -> None:
        """Close the HTTP session of a geolocator this instance created."""
        if self._owns_geolocator and self._geolocator is not None:
            await self._geolocator.__aexit__(None, None, None)
            self._geolocator = None
        self._reverse = None
