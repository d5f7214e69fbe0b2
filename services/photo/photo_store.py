"""Process-wide table of captured photos keyed by capture request id.

Photos live in memory for the lifetime of the process and are never
evicted. Lookups are by request id; the per-user helpers scan the table,
which is fine at demo scale.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from models.photo_models import StoredPhoto


class PhotoStore:
    """Store photos and apply the one-time EXIF byte update."""

    def __init__(self) -> None:
        self._photos: Dict[str, StoredPhoto] = {}

    def put(self, photo: StoredPhoto) -> StoredPhoto:
        if not photo.request_id:
            raise ValueError("Photo request_id is required.")
        self._photos[photo.request_id] = photo
        return photo

    def get(self, request_id: str) -> Optional[StoredPhoto]:
        return self._photos.get(request_id)

    def update_bytes(self, request_id: str, data: bytes) -> Optional[StoredPhoto]:
        """Replace the stored bytes (and size) of a photo, e.g. after GPS embedding.

        Returns the updated photo, or None when the request id is unknown.
        """
        photo = self._photos.get(request_id)
        if photo is None:
            return None
        photo.buffer = data
        photo.size = len(data)
        return photo

    def for_user(self, user_id: str) -> List[StoredPhoto]:
        """Return the user's photos, oldest first."""
        photos = [photo for photo in self._photos.values() if photo.user_id == user_id]
        photos.sort(key=lambda photo: photo.timestamp)
        return photos

    def latest_for_user(self, user_id: str) -> Optional[StoredPhoto]:
        photos = self.for_user(user_id)
        return photos[-1] if photos else None

    def __len__(self) -> int:
        return len(self._photos)
