"""Fetch, validate and cache the device location, and geocode it to a place."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import config
from models.location_models import GeocodedPlace, LocationSnapshot, ResolvedLocation
from services.session.capabilities import read_field

LOGGER = logging.getLogger(__name__)


@dataclass
class CachedLocation:
    snapshot: LocationSnapshot
    fetched_at: float


def snapshot_from_device(raw: Any) -> Optional[LocationSnapshot]:
    """Build a LocationSnapshot from whatever shape the location capability returned.

    Returns None when latitude, longitude, accuracy or timestamp is missing.
    """
    coords = read_field(raw, "coords")
    latitude = read_field(raw, "latitude", "lat")
    if latitude is None:
        latitude = read_field(coords, "latitude")
    longitude = read_field(raw, "longitude", "lng", "lon")
    if longitude is None:
        longitude = read_field(coords, "longitude")
    accuracy = read_field(raw, "accuracy")
    if accuracy is None:
        accuracy = read_field(coords, "accuracy")
    altitude = read_field(raw, "altitude")
    if altitude is None:
        altitude = read_field(coords, "altitude")
    timestamp = read_field(raw, "timestamp")
    correlation_id = read_field(raw, "correlationId", "correlation_id")

    if latitude is None or longitude is None or accuracy is None or not timestamp:
        return None

    return LocationSnapshot(
        latitude=float(latitude),
        longitude=float(longitude),
        accuracy=float(accuracy),
        timestamp=timestamp,
        altitude=float(altitude) if altitude is not None else None,
        correlation_id=str(correlation_id) if correlation_id else None,
    )


class LocationResolver:
    """One-shot high-accuracy location with a short per-user cache.

    Every failure is soft: callers get None and continue without location.
    """

    def __init__(
        self,
        geocoder: Any,
        cache: Optional[Dict[str, CachedLocation]] = None,
        ttl_seconds: float = config.LOCATION_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.geocoder = geocoder
        self.cache: Dict[str, CachedLocation] = cache if cache is not None else {}
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def resolve_location(self, session: Any, user_id: str, use_cache: bool = False) -> Optional[LocationSnapshot]:
        """Return the user's location, reusing a cached fix younger than the TTL when allowed."""
        if use_cache:
            cached = self.cache.get(user_id)
            if cached is not None and self._clock() - cached.fetched_at < self.ttl_seconds:
                LOGGER.info("Using cached location for user %s", user_id)
                return cached.snapshot

        try:
            raw = await session.location.get_latest_location(accuracy="high")
        except Exception as exc:
            LOGGER.error("Error getting location for user %s: %s", user_id, exc)
            return None

        snapshot = snapshot_from_device(raw)
        if snapshot is None:
            LOGGER.warning("Invalid location data for user %s, missing required fields: %r", user_id, raw)
            return None

        LOGGER.info(
            "Location retrieved for user %s: %s, %s, accuracy: %sm",
            user_id,
            snapshot.latitude,
            snapshot.longitude,
            snapshot.accuracy,
        )
        self.cache[user_id] = CachedLocation(snapshot=snapshot, fetched_at=self._clock())
        return snapshot

    async def resolve_and_geocode(self, session: Any, user_id: str) -> Optional[ResolvedLocation]:
        """Return the (cached) location plus its place; the place is empty when geocoding fails."""
        location = await self.resolve_location(session, user_id, use_cache=True)
        if location is None:
            return None

        try:
            place = await self.geocoder.reverse(location.latitude, location.longitude)
        except Exception as exc:
            LOGGER.error("Reverse geocoding failed for user %s: %s", user_id, exc)
            place = None

        if place is None:
            LOGGER.warning("No place found for %s, %s", location.latitude, location.longitude)
            place = GeocodedPlace()
        else:
            LOGGER.info("Geocoded location for user %s: city=%s, country=%s", user_id, place.city, place.country)
        return ResolvedLocation(location=location, place=place)

    def forget(self, user_id: str) -> None:
        self.cache.pop(user_id, None)
