"""In-memory stand-ins for the glasses capabilities and external services."""

import io
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image

from models.location_models import GeocodedPlace


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeAudio:
    def __init__(self, fail_speak: bool = False, fail_stop: bool = False) -> None:
        self.spoken: List[str] = []
        self.played: List[str] = []
        self.stop_calls = 0
        self.fail_speak = fail_speak
        self.fail_stop = fail_stop
        self.on_speak = None

    async def speak(self, text: str) -> None:
        if self.on_speak is not None:
            self.on_speak(text)
        if self.fail_speak:
            raise RuntimeError("speaker unavailable")
        self.spoken.append(text)

    async def play_audio(self, audio_url: str) -> Dict[str, Any]:
        self.played.append(audio_url)
        return {"success": True}

    async def stop_audio(self) -> None:
        self.stop_calls += 1
        if self.fail_stop:
            raise RuntimeError("nothing playing")


class FakeCamera:
    def __init__(self, photo: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        self.photo = photo
        self.error = error
        self.calls = 0

    async def request_photo(self) -> Optional[Dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.photo


class FakeLocation:
    def __init__(self, location: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        self.location = location
        self.error = error
        self.calls = 0

    async def get_latest_location(self, accuracy: str = "high") -> Optional[Dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.location


class FakeEvents:
    def __init__(self) -> None:
        self.handlers: Dict[str, List[Any]] = {"button": [], "touch": [], "transcription": []}
        self.unsubscribed: List[str] = []

    def _subscribe(self, kind: str, handler: Any):
        self.handlers[kind].append(handler)

        def unsubscribe() -> None:
            self.handlers[kind].remove(handler)
            self.unsubscribed.append(kind)

        return unsubscribe

    def on_button_press(self, handler):
        return self._subscribe("button", handler)

    def on_touch_event(self, handler):
        return self._subscribe("touch", handler)

    def on_transcription(self, handler):
        return self._subscribe("transcription", handler)

    def emit(self, kind: str, event: Any) -> None:
        for handler in list(self.handlers[kind]):
            handler(event)


class FakeStorage:
    def __init__(self, values: Optional[Dict[str, str]] = None, fail: bool = False) -> None:
        self.values = dict(values or {})
        self.fail = fail

    async def get(self, key: str) -> Optional[str]:
        if self.fail:
            raise RuntimeError("storage offline")
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail:
            raise RuntimeError("storage offline")
        self.values[key] = value


@dataclass
class FakeSession:
    camera: FakeCamera = field(default_factory=FakeCamera)
    location: FakeLocation = field(default_factory=FakeLocation)
    audio: FakeAudio = field(default_factory=FakeAudio)
    events: FakeEvents = field(default_factory=FakeEvents)
    simple_storage: FakeStorage = field(default_factory=FakeStorage)


class FakeGeocoder:
    def __init__(self, place: Optional[GeocodedPlace] = None, error: Optional[Exception] = None) -> None:
        self.place = place
        self.error = error
        self.calls: List[tuple] = []

    async def reverse(self, latitude: float, longitude: float) -> Optional[GeocodedPlace]:
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.place


class FakeNarrator:
    def __init__(self, city_text: Optional[str] = None, nearby_text: Optional[str] = None) -> None:
        self.city_text = city_text
        self.nearby_text = nearby_text
        self.city_calls: List[Optional[str]] = []
        self.nearby_calls: List[tuple] = []

    async def city_description(self, city):
        self.city_calls.append(city)
        return self.city_text

    async def nearby_places(self, street, city, country, mentioned_places=(), previous_responses=()):
        self.nearby_calls.append((street, city, country, list(mentioned_places), list(previous_responses)))
        return self.nearby_text


class FakeAnalysisClient:
    def __init__(self, explanation: Optional[str] = None) -> None:
        self.explanation = explanation
        self.sent: List[bytes] = []

    async def send_for_analysis(self, image_bytes: bytes, user_id: str) -> Optional[str]:
        self.sent.append(image_bytes)
        return self.explanation


def make_image_bytes(fmt: str = "JPEG", size=(16, 16)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(120, 160, 200)).save(buffer, format=fmt)
    return buffer.getvalue()


NEW_YORK = {"latitude": 40.7128, "longitude": -74.0060, "accuracy": 5.0, "timestamp": 1700000000000}


