"""Capability surface of a connected glasses session.

The hardware SDK adapter hands the orchestrator an object shaped like
`GlassesSession`. Only the members used by this service are described;
the transport behind them is out of scope.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

from models.session_models import Unsubscribe

EventHandler = Callable[[Any], Any]


class CameraCapability(Protocol):
    async def request_photo(self) -> Any:
        """Return an object with request_id, buffer, timestamp, mime_type, filename and size."""
        ...


class LocationCapability(Protocol):
    async def get_latest_location(self, accuracy: str = "high") -> Any:
        ...


class AudioCapability(Protocol):
    async def play_audio(self, audio_url: str) -> Any:
        ...

    async def speak(self, text: str) -> Any:
        ...

    async def stop_audio(self) -> Any:
        """May raise when nothing is playing."""
        ...


class EventsCapability(Protocol):
    def on_button_press(self, handler: EventHandler) -> Unsubscribe:
        ...

    def on_touch_event(self, handler: EventHandler) -> Unsubscribe:
        ...

    def on_transcription(self, handler: EventHandler) -> Unsubscribe:
        ...


class SimpleStorageCapability(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class GlassesSession(Protocol):
    camera: CameraCapability
    location: LocationCapability
    audio: AudioCapability
    events: EventsCapability
    simple_storage: SimpleStorageCapability


def read_field(source: Any, *names: str) -> Any:
    """Return the first non-None value among `names` on a dict or an object."""
    if source is None:
        return None
    for name in names:
        if isinstance(source, dict):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is not None:
            return value
    return None
