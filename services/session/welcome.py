"""Location-aware welcome narration played when a session starts."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import config
from models.location_models import ResolvedLocation
from services.audio.speech import SpeechPlayer
from services.realtime.scheduled_tasks import ScheduledStep, SessionTaskScheduler

LOGGER = logging.getLogger(__name__)

WELCOME_PHRASE = "Welcome to your tour"


def welcome_message(resolved: Optional[ResolvedLocation]) -> str:
    """Build the welcome phrase, naming the most local place that is known."""
    if resolved is None:
        return WELCOME_PHRASE
    location_text = resolved.place.local_name
    if location_text:
        return f"{WELCOME_PHRASE} in {location_text}"
    return WELCOME_PHRASE


class WelcomeSequence:
    """Declare the welcome steps for one session.

    resolve place (no delay) -> speak welcome -> fetch and speak the city
    description. The welcome is spoken in the background so the city delay
    counts from when the welcome started, and the sequence ends early when
    no city is known.
    """

    def __init__(
        self,
        resolver: Any,
        narrator: Any,
        speech: SpeechPlayer,
        welcome_delay: float = config.WELCOME_DELAY_SECONDS,
        city_delay: float = config.CITY_DESCRIPTION_DELAY_SECONDS,
    ) -> None:
        self.resolver = resolver
        self.narrator = narrator
        self.speech = speech
        self.welcome_delay = welcome_delay
        self.city_delay = city_delay

    def steps(self, session: Any, user_id: str, scheduler: SessionTaskScheduler) -> List[ScheduledStep]:
        state = {"resolved": None}

        async def resolve_place() -> bool:
            try:
                state["resolved"] = await self.resolver.resolve_and_geocode(session, user_id)
            except Exception as exc:
                LOGGER.warning("Failed to get location for welcome message: %s", exc)
            return True

        async def speak_welcome() -> bool:
            resolved: Optional[ResolvedLocation] = state["resolved"]
            message = welcome_message(resolved)
            scheduler.spawn(self.speech.speak(session, user_id, message, label="welcome message"), name="welcome")
            return bool(resolved is not None and resolved.place.city)

        async def speak_city_description() -> bool:
            resolved: ResolvedLocation = state["resolved"]
            description = await self.narrator.city_description(resolved.place.city)
            if not description:
                LOGGER.warning("No city description for %s", resolved.place.city)
                return False
            return await self.speech.speak(session, user_id, description, label="city description")

        return [
            ScheduledStep("resolve place", 0, resolve_place),
            ScheduledStep("speak welcome", self.welcome_delay, speak_welcome),
            ScheduledStep("speak city description", self.city_delay, speak_city_description),
        ]
