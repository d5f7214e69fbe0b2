"""Take a photo on the glasses, store it and publish it to the web UI."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from models.photo_models import CaptureResult, StoredPhoto
from services.photo.photo_store import PhotoStore
from services.realtime.event_stream import EventBroadcaster
from services.session.capabilities import read_field

LOGGER = logging.getLogger(__name__)


def _capture_time(value: Any) -> datetime:
    """Normalize the camera's timestamp to an aware UTC datetime."""
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            LOGGER.warning("Unrecognised photo timestamp %r; using current time", value)
            return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Millisecond epoch values are far larger than second-based ones.
        seconds = value / 1000.0 if value > 1e11 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return datetime.now(timezone.utc)


class PhotoCapture:
    """Request a photo from the camera capability and keep it for the UI."""

    def __init__(self, photos: PhotoStore, photo_events: EventBroadcaster) -> None:
        self.photos = photos
        self.photo_events = photo_events

    async def capture(self, session: Any, user_id: str) -> Optional[CaptureResult]:
        """Capture, store and broadcast a photo.

        Returns:
            The capture result, or None when the camera call failed or returned
            no image; callers abort the rest of the photo chain on None.
        """
        try:
            photo = await session.camera.request_photo()
        except Exception as exc:
            LOGGER.error("Error taking photo for user %s: %s", user_id, exc)
            return None

        buffer = read_field(photo, "buffer", "data")
        if not buffer:
            LOGGER.warning("Photo capture for user %s returned no image data.", user_id)
            return None
        buffer = bytes(buffer)

        request_id = str(read_field(photo, "request_id", "requestId") or uuid.uuid4().hex)
        mime_type = read_field(photo, "mime_type", "mimeType") or "image/jpeg"
        stored = StoredPhoto(
            request_id=request_id,
            buffer=buffer,
            timestamp=_capture_time(read_field(photo, "timestamp")),
            user_id=user_id,
            mime_type=mime_type,
            filename=read_field(photo, "filename") or f"{request_id}.jpg",
            size=len(buffer),
        )
        self.photos.put(stored)
        LOGGER.info("Photo stored for user %s, requestId: %s (%d bytes)", user_id, request_id, stored.size)

        self.photo_events.publish(user_id, stored.to_payload())
        return CaptureResult(image_bytes=buffer, mime_type=mime_type, request_id=request_id)
