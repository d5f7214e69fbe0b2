"""Per-session lifecycle: welcome, button-driven photo analysis and idle narration.

Every chain started here (button handling, idle ticks, the welcome sequence)
runs under the session's scheduler, which logs failures instead of letting
them escape. Stopping a session cancels its timers; calls already in flight
finish, and any speech they request is dropped because the handle is gone.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import config
from models.session_models import ActiveSession, ButtonPress
from services.audio.speech import SpeechPlayer
from services.photo.exif_location import annotate_with_location
from services.photo.photo_capture import PhotoCapture
from services.realtime.event_stream import transcription_payload
from services.realtime.scheduled_tasks import SessionTaskScheduler
from services.session.capabilities import GlassesSession, read_field
from services.session.idle_narration import IdleNarrationLoop
from services.session.welcome import WelcomeSequence

LOGGER = logging.getLogger(__name__)


def button_press_from_event(event: Any) -> ButtonPress:
    press_type = read_field(event, "press_type", "pressType") or "short"
    return ButtonPress(button_id=read_field(event, "button_id", "buttonId"), press_type=str(press_type))


class SessionOrchestrator:
    """Start and stop glasses sessions and wire their events to the narration services."""

    def __init__(
        self,
        registry: Any,
        resolver: Any,
        narrator: Any,
        analysis_client: Any,
        idle_poll_interval: float = config.IDLE_POLL_INTERVAL_SECONDS,
        idle_threshold: float = config.IDLE_THRESHOLD_SECONDS,
        welcome_delay: float = config.WELCOME_DELAY_SECONDS,
        city_delay: float = config.CITY_DESCRIPTION_DELAY_SECONDS,
        clear_history_on_stop: bool = config.CLEAR_NARRATION_HISTORY_ON_STOP,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.narrator = narrator
        self.analysis_client = analysis_client
        self.idle_poll_interval = idle_poll_interval
        self.clear_history_on_stop = clear_history_on_stop

        self.speech = SpeechPlayer(registry.sessions, registry.tracker, registry.idle_guard)
        self.capture = PhotoCapture(registry.photos, registry.photo_events)
        self.idle_loop = IdleNarrationLoop(
            registry.tracker,
            registry.idle_guard,
            registry.narration_history,
            resolver,
            narrator,
            self.speech,
            idle_threshold=idle_threshold,
        )
        self.welcome = WelcomeSequence(resolver, narrator, self.speech, welcome_delay, city_delay)
        self._active: Dict[str, ActiveSession] = {}

    def active_session(self, user_id: str) -> Optional[ActiveSession]:
        return self._active.get(user_id)

    async def start_session(self, handle: GlassesSession, session_id: str, user_id: str) -> ActiveSession:
        """Register the device session, subscribe to its events and start narration."""
        LOGGER.info("Session started for user %s", user_id)
        if user_id in self._active:
            LOGGER.info("User %s already has an active session; stopping it first", user_id)
            await self.stop_session(self._active[user_id].session_id, user_id, reason="replaced")

        self.registry.sessions.register(user_id, handle)
        scheduler = SessionTaskScheduler(owner=f"session:{user_id}")
        active = ActiveSession(session_id=session_id, user_id=user_id, handle=handle, scheduler=scheduler)
        self._active[user_id] = active

        self._subscribe(active)
        scheduler.every(
            self.idle_poll_interval,
            lambda: self.idle_loop.check(handle, user_id),
            name="idle-check",
        )
        scheduler.run_sequence(self.welcome.steps(handle, user_id, scheduler), name="welcome")
        return active

    async def stop_session(self, session_id: str, user_id: str, reason: str = "") -> None:
        """Tear down everything the session started; narration history survives unless configured."""
        LOGGER.info("Session %s stopped for user %s, reason: %s", session_id, user_id, reason)
        active = self._active.pop(user_id, None)
        if active is not None:
            active.scheduler.cancel()
            for unsubscribe in active.subscriptions:
                try:
                    unsubscribe()
                except Exception as exc:
                    LOGGER.warning("Failed to unsubscribe session event handler for user %s: %s", user_id, exc)
            active.subscriptions.clear()

        self.registry.tracker.clear(user_id)
        self.registry.idle_guard.discard(user_id)
        self.resolver.forget(user_id)
        if active is not None:
            self.registry.sessions.unregister(user_id, active.handle)
        else:
            self.registry.sessions.unregister(user_id)
        if self.clear_history_on_stop:
            self.registry.narration_history.clear(user_id)
        LOGGER.info("Stopped idle check for user %s", user_id)

    def _subscribe(self, active: ActiveSession) -> None:
        events = active.handle.events
        user_id = active.user_id

        def on_button(event: Any) -> None:
            active.scheduler.spawn(self.handle_button_press(active.handle, user_id, event), name="button-press")

        def on_touch(event: Any) -> None:
            LOGGER.info("Touch event for user %s: %s", user_id, read_field(event, "gesture_name", "gestureName"))

        def on_transcription(data: Any) -> None:
            text = read_field(data, "text")
            if not text:
                return
            is_final = bool(read_field(data, "is_final", "isFinal"))
            LOGGER.debug("Transcription for user %s: %s, final: %s", user_id, text, is_final)
            self.registry.transcription_events.publish(user_id, transcription_payload(text, is_final, user_id))

        for subscribe, handler in (
            (events.on_button_press, on_button),
            (events.on_touch_event, on_touch),
            (events.on_transcription, on_transcription),
        ):
            try:
                active.subscriptions.append(subscribe(handler))
            except Exception as exc:
                LOGGER.warning("Failed to subscribe to session events for user %s: %s", user_id, exc)

    async def handle_button_press(self, session: Any, user_id: str, event: Any) -> bool:
        """Run the photo chain for a short press; returns True when an explanation was spoken."""
        press = button_press_from_event(event)
        LOGGER.info("Button pressed for user %s: %s, type: %s", user_id, press.button_id, press.press_type)
        if press.is_long:
            # Reserved for a streaming-mode toggle.
            LOGGER.info("Long press for user %s ignored", user_id)
            return False

        photo = await self.capture.capture(session, user_id)
        if photo is None:
            return False

        location = await self.resolver.resolve_location(session, user_id, use_cache=True)
        if location is None:
            LOGGER.warning("Location not available, cannot send photo for analysis (user %s)", user_id)
            return False

        image_bytes = photo.image_bytes
        annotated = await asyncio.to_thread(annotate_with_location, photo.image_bytes, photo.mime_type, location)
        if annotated is None:
            LOGGER.warning("Sending photo %s without GPS metadata", photo.request_id)
        else:
            image_bytes = annotated
            if self.registry.photos.update_bytes(photo.request_id, annotated) is not None:
                LOGGER.info("Updated stored photo %s with GPS metadata (%d bytes)", photo.request_id, len(annotated))

        explanation = await self.analysis_client.send_for_analysis(image_bytes, user_id)
        if not explanation:
            return False

        self.registry.transcription_events.publish(
            user_id, transcription_payload(f"Photo explanation: {explanation}", True, user_id)
        )
        await self.speech.interrupt(session, user_id)
        return await self.speech.speak(session, user_id, explanation, label="analysis result")

    async def shutdown(self) -> None:
        """Stop every active session (application shutdown)."""
        for user_id, active in list(self._active.items()):
            await self.stop_session(active.session_id, user_id, reason="shutdown")
