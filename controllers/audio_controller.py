"""Controllers that trigger playback on a user's glasses from the web UI."""

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from utils.request_validation import require_session, require_text, require_user_id

LOGGER = logging.getLogger(__name__)


async def play_audio(request: Request, audio_url: Optional[str], user_id: Optional[str]) -> Dict[str, Any]:
    audio_url = require_text(audio_url, "audioUrl")
    user_id = require_user_id(user_id)
    session = require_session(request.app.state.registry.sessions, user_id)

    LOGGER.info("[Audio] Playing audio for user %s: %s", user_id, audio_url)
    result = await session.audio.play_audio(audio_url=audio_url)
    LOGGER.debug("[Audio] Play audio result: %r", result)
    return {"success": True, "message": "Audio playback started", "userId": user_id, "audioUrl": audio_url}


async def speak_text(request: Request, text: Optional[str], user_id: Optional[str]) -> Dict[str, Any]:
    text = require_text(text, "text")
    user_id = require_user_id(user_id)
    session = require_session(request.app.state.registry.sessions, user_id)

    LOGGER.info("[Audio] Speaking text for user %s: %s", user_id, text[:50])
    await session.audio.speak(text)
    return {"success": True, "message": "Text-to-speech started", "userId": user_id}


async def stop_audio(request: Request, user_id: Optional[str]) -> Dict[str, Any]:
    user_id = require_user_id(user_id)
    session = require_session(request.app.state.registry.sessions, user_id)

    LOGGER.info("[Audio] Stopping audio for user %s", user_id)
    await session.audio.stop_audio()
    return {"success": True, "message": "Audio stopped", "userId": user_id}
