"""Validation helpers shared by the user-scoped API routes."""

from typing import Any, Optional

from fastapi import HTTPException

from models.photo_models import StoredPhoto


def require_user_id(user_id: Optional[str]) -> str:
    """Return the trimmed user id or raise a 400 when it is missing."""
    if not user_id or not str(user_id).strip():
        raise HTTPException(status_code=400, detail="userId is required")
    return str(user_id).strip()


def require_text(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise HTTPException(status_code=400, detail=f"{field_name} is required")
    return str(value)


def require_owned_photo(photo: Optional[StoredPhoto], user_id: str) -> StoredPhoto:
    """Return the photo when it exists and belongs to `user_id` (404 / 403 otherwise)."""
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    if photo.user_id != user_id:
        raise HTTPException(status_code=403, detail="Access denied: photo belongs to different user")
    return photo


def require_session(sessions: Any, user_id: str) -> Any:
    """Return the live session handle for `user_id`, or raise a 404."""
    try:
        return sessions.get(user_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"No active session for user {user_id}") from exc
