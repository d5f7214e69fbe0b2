"""Play narration on the glasses while keeping idle tracking in sync."""

from __future__ import annotations

import logging
from typing import Any

from services.audio.activity_tracker import AudioActivityTracker
from services.realtime.session_store import SessionStore
from services.session.narration_state import IdleQueryGuard

LOGGER = logging.getLogger(__name__)


class SpeechPlayer:
    """Every narration goes through here.

    The audio start is recorded before the device call, and the idle guard is
    cleared once the call settles (success or failure), so the idle loop
    measures idleness from this fresh baseline.
    """

    def __init__(self, sessions: SessionStore, tracker: AudioActivityTracker, guard: IdleQueryGuard) -> None:
        self.sessions = sessions
        self.tracker = tracker
        self.guard = guard

    async def speak(self, session: Any, user_id: str, text: str, label: str = "speech") -> bool:
        """Speak `text` on the session; returns True when playback completed."""
        if not text or not text.strip():
            LOGGER.debug("[Audio] Empty %s text for user %s; nothing to speak", label, user_id)
            return False
        if not self.sessions.is_active(user_id, session):
            LOGGER.info("[Audio] Session for user %s is gone; dropping %s", user_id, label)
            return False

        self.tracker.mark_started(user_id)
        LOGGER.info("[Audio] Starting %s playback for user %s: %s...", label, user_id, text[:50])
        try:
            await session.audio.speak(text)
            LOGGER.info("[Audio] %s finished playing for user %s", label, user_id)
            return True
        except Exception as exc:
            LOGGER.warning("[Audio] Failed to play %s for user %s: %s", label, user_id, exc)
            return False
        finally:
            self.guard.clear(user_id)

    async def interrupt(self, session: Any, user_id: str) -> None:
        """Stop whatever is playing. Failing here usually means nothing was playing."""
        try:
            await session.audio.stop_audio()
            LOGGER.info("[Audio] Stopped current audio for user %s", user_id)
        except Exception as exc:
            LOGGER.debug("[Audio] No audio to stop for user %s or error stopping: %s", user_id, exc)

    async def play_audio(self, session: Any, user_id: str, audio_url: str, label: str = "audio") -> bool:
        """Play a hosted audio file with the same bookkeeping as `speak`."""
        if not audio_url:
            LOGGER.debug("[Audio] Empty %s url for user %s; nothing to play", label, user_id)
            return False
        if not self.sessions.is_active(user_id, session):
            LOGGER.info("[Audio] Session for user %s is gone; dropping %s", user_id, label)
            return False

        self.tracker.mark_started(user_id)
        LOGGER.info("[Audio] Starting %s playback for user %s: %s", label, user_id, audio_url)
        try:
            await session.audio.play_audio(audio_url=audio_url)
            LOGGER.info("[Audio] %s finished playing for user %s", label, user_id)
            return True
        except Exception as exc:
            LOGGER.warning("[Audio] Failed to play %s for user %s: %s", label, user_id, exc)
            return False
        finally:
            self.guard.clear(user_id)
