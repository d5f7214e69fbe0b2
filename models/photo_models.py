from __future__ import annotations

import base64
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass
class StoredPhoto:
    """In-memory representation of a captured photo.

    Attributes:
        request_id: Unique id of the capture request (key in the photo table).
        buffer: Raw image bytes; replaced once when GPS EXIF data is embedded.
        timestamp: Capture time reported by the camera.
        user_id: Owner of the photo.
        mime_type: MIME type reported by the camera (e.g. image/jpeg).
        filename: Filename reported by the camera.
        size: Length of `buffer` in bytes.
    """

    request_id: str
    buffer: bytes
    timestamp: datetime
    user_id: str
    mime_type: str
    filename: str
    size: int

    def timestamp_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON envelope the web UI consumes (SSE and base64 endpoint)."""
        encoded = base64.b64encode(self.buffer).decode("utf-8")
        return {
            "requestId": self.request_id,
            "timestamp": self.timestamp_ms(),
            "mimeType": self.mime_type,
            "filename": self.filename,
            "size": self.size,
            "userId": self.user_id,
            "base64": encoded,
            "dataUrl": f"data:{self.mime_type};base64,{encoded}",
        }


@dataclass
class CaptureResult:
    """What the capture step hands to the rest of the photo chain."""

    image_bytes: bytes
    mime_type: str
    request_id: str
