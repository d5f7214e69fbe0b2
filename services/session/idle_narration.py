"""Narrate nearby places once the user has heard nothing for a while.

Per user the loop is in one of three states:

- Active: speech started less than `idle_threshold` seconds ago.
- Idle: the threshold has passed and no query ran in this idle period.
- QueryInFlight: the guard flag is set; a query or its playback is pending.

The guard flag is set before any network call and cleared on every failure
path, or after playback of a successful narration completes. Any new speech
(which moves the tracker forward) returns the user to Active and clears the
flag on the next tick.
"""

from __future__ import annotations

import logging
from typing import Any

import config
from services.audio.activity_tracker import AudioActivityTracker
from services.audio.speech import SpeechPlayer
from services.openai.place_extraction import extract_place_names
from services.session.narration_state import IdleQueryGuard, NarrationHistoryStore

LOGGER = logging.getLogger(__name__)


class IdleNarrationLoop:
    """Evaluate idleness for one user per tick and narrate nearby places when idle."""

    def __init__(
        self,
        tracker: AudioActivityTracker,
        guard: IdleQueryGuard,
        history: NarrationHistoryStore,
        resolver: Any,
        narrator: Any,
        speech: SpeechPlayer,
        idle_threshold: float = config.IDLE_THRESHOLD_SECONDS,
    ) -> None:
        self.tracker = tracker
        self.guard = guard
        self.history = history
        self.resolver = resolver
        self.narrator = narrator
        self.speech = speech
        self.idle_threshold = idle_threshold

    async def check(self, session: Any, user_id: str) -> bool:
        """Run one idle check; returns True when a nearby-places query was started."""
        last_started = self.tracker.last_started(user_id)
        if last_started is None:
            LOGGER.debug("[Idle Check] No audio has started yet for user %s, skipping check", user_id)
            return False

        elapsed = self.tracker.now() - last_started
        if elapsed < self.idle_threshold:
            if self.guard.is_set(user_id):
                LOGGER.info("[Idle Check] Audio played recently for user %s, resetting nearby places flag", user_id)
                self.guard.clear(user_id)
            return False

        if self.guard.is_set(user_id):
            LOGGER.debug("[Idle Check] Already queried nearby places for this idle period, skipping")
            return False

        LOGGER.info("[Idle Check] User %s has been idle for %d seconds. Starting nearby places query.", user_id, int(elapsed))
        self.guard.set(user_id)
        try:
            spoken = await self._narrate_nearby_places(session, user_id)
        except Exception:
            LOGGER.exception("[Nearby Places] Error in nearby places query for user %s", user_id)
            self.guard.clear(user_id)
            return True

        if not spoken:
            self.guard.clear(user_id)
        return True

    async def _narrate_nearby_places(self, session: Any, user_id: str) -> bool:
        """Query and speak nearby places; returns True when the narration was played."""
        resolved = await self.resolver.resolve_and_geocode(session, user_id)
        if resolved is None:
            LOGGER.warning("[Nearby Places] Cannot query nearby places for user %s: location not available", user_id)
            return False

        place = resolved.place
        if not place.city or not place.country:
            LOGGER.warning(
                "[Nearby Places] Cannot query nearby places: missing city (%s) or country (%s)",
                place.city,
                place.country,
            )
            return False

        narration = await self.narrator.nearby_places(
            place.street,
            place.city,
            place.country,
            self.history.mentioned_places(user_id),
            self.history.previous_responses(user_id),
        )
        if not narration:
            LOGGER.warning("[Nearby Places] Generator returned an empty response for user %s", user_id)
            return False

        places = extract_place_names(narration)
        history = self.history.record(user_id, narration, places)
        LOGGER.info(
            "[Nearby Places] Stored response (%d kept); %d unique places mentioned so far",
            len(history.previous_responses),
            len(history.mentioned_places),
        )
        return await self.speech.speak(session, user_id, narration, label="nearby places")
