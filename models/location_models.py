"""Location domain models shared by the resolver, EXIF writer and narration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class LocationSnapshot:
    """One GPS fix reported by the glasses."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: Any
    altitude: Optional[float] = None
    correlation_id: Optional[str] = None


@dataclass
class GeocodedPlace:
    """Human-readable place derived from a LocationSnapshot.

    Every field is optional; `GeocodedPlace()` is the empty place returned
    when reverse geocoding fails.
    """

    city: Optional[str] = None
    district: Optional[str] = None
    neighborhood: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    formatted_address: Optional[str] = None

    @property
    def street(self) -> str:
        """First component of the formatted address, or "Unknown"."""
        if self.formatted_address:
            first = self.formatted_address.split(",")[0].strip()
            if first:
                return first
        return "Unknown"

    @property
    def local_name(self) -> Optional[str]:
        """Most specific area name available for greetings."""
        return self.district or self.neighborhood or self.city or None


@dataclass
class ResolvedLocation:
    location: LocationSnapshot
    place: GeocodedPlace
