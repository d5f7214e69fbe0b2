"""Server-Sent Events streams of photos and transcriptions for the web UI."""

from typing import Optional

from fastapi import Request
from fastapi.responses import StreamingResponse

from utils.request_validation import require_user_id

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
}


async def photo_stream(request: Request, user_id: Optional[str]) -> StreamingResponse:
    """Stream new photos of the user, after replaying the ones already stored."""
    user_id = require_user_id(user_id)
    registry = request.app.state.registry

    def stored_photos():
        return [photo.to_payload() for photo in registry.photos.for_user(user_id)]

    return StreamingResponse(
        registry.photo_events.stream(user_id, backlog=stored_photos),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def transcription_stream(request: Request, user_id: Optional[str]) -> StreamingResponse:
    user_id = require_user_id(user_id)
    events = request.app.state.registry.transcription_events
    return StreamingResponse(
        events.stream(user_id),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
