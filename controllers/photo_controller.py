"""Controllers for retrieving captured photos."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import Response

from services.photo.photo_store import PhotoStore
from utils.request_validation import require_owned_photo, require_user_id


def _photos(request: Request) -> PhotoStore:
    return request.app.state.registry.photos


async def get_latest_photo(request: Request, user_id: Optional[str]) -> Dict[str, Any]:
    """Return metadata of the user's most recent photo."""
    user_id = require_user_id(user_id)
    photo = _photos(request).latest_for_user(user_id)
    if photo is None:
        raise HTTPException(status_code=404, detail="No photos available for this user")
    return {
        "requestId": photo.request_id,
        "timestamp": photo.timestamp_ms(),
        "userId": photo.user_id,
        "hasPhoto": True,
    }


async def get_photo_bytes(request: Request, request_id: str, user_id: Optional[str]) -> Response:
    """Return the stored image bytes with the photo's MIME type."""
    user_id = require_user_id(user_id)
    photo = require_owned_photo(_photos(request).get(request_id), user_id)
    return Response(
        content=photo.buffer,
        media_type=photo.mime_type,
        headers={"Cache-Control": "no-cache"},
    )


async def get_photo_base64(request: Request, request_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    """Return the photo as the base64 JSON envelope the UI renders."""
    user_id = require_user_id(user_id)
    photo = require_owned_photo(_photos(request).get(request_id), user_id)
    return photo.to_payload()
