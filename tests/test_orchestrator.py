import asyncio

from fakes import (
    FakeAnalysisClient,
    FakeCamera,
    FakeGeocoder,
    FakeLocation,
    FakeNarrator,
    FakeSession,
    make_image_bytes,
)
from models.location_models import GeocodedPlace
from services.location.location_resolver import LocationResolver
from services.photo.exif_location import read_gps_coordinates
from services.session.orchestrator import SessionOrchestrator, button_press_from_event

LOCATION = {"latitude": 10.0, "longitude": 20.0, "accuracy": 5.0, "timestamp": 1700000000000}


def photo_event(buffer: bytes) -> dict:
    return {
        "requestId": "r1",
        "buffer": buffer,
        "timestamp": 1700000000000,
        "mimeType": "image/jpeg",
        "filename": "r1.jpg",
        "size": len(buffer),
    }


def build(registry, clock, analysis=None, narrator=None, **kwargs):
    resolver = LocationResolver(
        FakeGeocoder(GeocodedPlace(city="Paris", country="France")),
        cache=registry.location_cache,
        clock=clock,
    )
    return SessionOrchestrator(
        registry,
        resolver,
        narrator or FakeNarrator(),
        analysis or FakeAnalysisClient(),
        idle_poll_interval=3600,
        welcome_delay=3600,
        city_delay=3600,
        **kwargs,
    )


def make_session(jpeg: bytes) -> FakeSession:
    return FakeSession(camera=FakeCamera(photo_event(jpeg)), location=FakeLocation(dict(LOCATION)))


def test_button_press_from_event():
    assert button_press_from_event({"buttonId": "main", "pressType": "long"}).is_long
    press = button_press_from_event(object())
    assert press.press_type == "short"
    assert press.button_id is None


async def test_button_press_end_to_end(registry, clock):
    jpeg = make_image_bytes()
    analysis = FakeAnalysisClient("Statue of Liberty")
    orchestrator = build(registry, clock, analysis=analysis)
    session = make_session(jpeg)
    await orchestrator.start_session(session, "s1", "u1")
    registry.idle_guard.set("u1")

    spoken = await orchestrator.handle_button_press(session, "u1", {"buttonId": "main", "pressType": "short"})

    assert spoken is True
    stored = registry.photos.get("r1")
    assert stored.buffer != jpeg
    assert stored.size == len(stored.buffer)
    lat, lon = read_gps_coordinates(stored.buffer)
    assert (round(lat, 4), round(lon, 4)) == (10.0, 20.0)
    assert analysis.sent == [stored.buffer]
    assert session.audio.stop_calls == 1
    assert session.audio.spoken == ["Statue of Liberty"]
    assert registry.tracker.last_started("u1") == clock.value
    assert not registry.idle_guard.is_set("u1")
    await orchestrator.stop_session("s1", "u1")


async def test_analysis_failure_is_silent(registry, clock):
    analysis = FakeAnalysisClient(None)
    orchestrator = build(registry, clock, analysis=analysis)
    session = make_session(make_image_bytes())
    await orchestrator.start_session(session, "s1", "u1")

    assert await orchestrator.handle_button_press(session, "u1", {"pressType": "short"}) is False

    assert session.audio.spoken == []
    assert session.audio.stop_calls == 0
    assert read_gps_coordinates(registry.photos.get("r1").buffer) is not None
    await orchestrator.stop_session("s1", "u1")


async def test_missing_location_aborts_before_analysis(registry, clock):
    analysis = FakeAnalysisClient("unused")
    orchestrator = build(registry, clock, analysis=analysis)
    session = FakeSession(camera=FakeCamera(photo_event(make_image_bytes())), location=FakeLocation(None))
    await orchestrator.start_session(session, "s1", "u1")

    assert await orchestrator.handle_button_press(session, "u1", {}) is False
    assert analysis.sent == []
    assert registry.photos.get("r1") is not None
    await orchestrator.stop_session("s1", "u1")


async def test_long_press_is_ignored(registry, clock):
    orchestrator = build(registry, clock)
    session = make_session(make_image_bytes())
    await orchestrator.start_session(session, "s1", "u1")

    assert await orchestrator.handle_button_press(session, "u1", {"pressType": "long"}) is False
    assert session.camera.calls == 0
    await orchestrator.stop_session("s1", "u1")


async def test_button_event_runs_in_background(registry, clock):
    orchestrator = build(registry, clock, analysis=FakeAnalysisClient("A fountain"))
    session = make_session(make_image_bytes())
    active = await orchestrator.start_session(session, "s1", "u1")

    session.events.emit("button", {"buttonId": "main", "pressType": "short"})
    await active.scheduler.wait_detached()

    assert session.audio.spoken == ["A fountain"]
    await orchestrator.stop_session("s1", "u1")


async def test_transcriptions_are_published(registry, clock):
    orchestrator = build(registry, clock)
    session = make_session(make_image_bytes())
    await orchestrator.start_session(session, "s1", "u1")
    queue = registry.transcription_events.subscribe("u1")

    session.events.emit("transcription", {"text": "hello", "isFinal": False})
    session.events.emit("transcription", {"text": "hello there", "isFinal": True})

    first, second = queue.get_nowait(), queue.get_nowait()
    assert (first["text"], first["isFinal"]) == ("hello", False)
    assert (second["text"], second["isFinal"], second["userId"]) == ("hello there", True, "u1")
    await orchestrator.stop_session("s1", "u1")


async def test_stop_session_tears_down(registry, clock):
    orchestrator = build(registry, clock)
    session = make_session(make_image_bytes())
    active = await orchestrator.start_session(session, "s1", "u1")
    registry.tracker.mark_started("u1")
    registry.idle_guard.set("u1")
    registry.narration_history.record("u1", "earlier narration", ["Louvre"])

    await orchestrator.stop_session("s1", "u1", reason="disconnect")

    assert active.scheduler.closed
    assert sorted(session.events.unsubscribed) == ["button", "touch", "transcription"]
    assert registry.tracker.last_started("u1") is None
    assert not registry.idle_guard.is_set("u1")
    assert not registry.sessions.is_active("u1")
    assert registry.narration_history.mentioned_places("u1") == ["Louvre"]
    assert orchestrator.active_session("u1") is None


async def test_stop_can_clear_history(registry, clock):
    orchestrator = build(registry, clock, clear_history_on_stop=True)
    session = make_session(make_image_bytes())
    await orchestrator.start_session(session, "s1", "u1")
    registry.narration_history.record("u1", "earlier narration", ["Louvre"])

    await orchestrator.stop_session("s1", "u1")
    assert registry.narration_history.mentioned_places("u1") == []


async def test_restarting_replaces_previous_session(registry, clock):
    orchestrator = build(registry, clock)
    old_session = make_session(make_image_bytes())
    new_session = make_session(make_image_bytes())
    old = await orchestrator.start_session(old_session, "s1", "u1")
    await orchestrator.start_session(new_session, "s2", "u1")

    assert old.scheduler.closed
    assert registry.sessions.get("u1") is new_session
    assert orchestrator.active_session("u1").session_id == "s2"
    await orchestrator.shutdown()
    assert not registry.sessions.is_active("u1")


async def test_welcome_is_spoken_after_start(registry, clock):
    narrator = FakeNarrator(city_text="Paris is lovely.")
    resolver = LocationResolver(FakeGeocoder(GeocodedPlace(city="Paris", country="France")), clock=clock)
    orchestrator = SessionOrchestrator(
        registry,
        resolver,
        narrator,
        FakeAnalysisClient(),
        idle_poll_interval=3600,
        welcome_delay=0.01,
        city_delay=0.01,
    )
    session = make_session(make_image_bytes())
    active = await orchestrator.start_session(session, "s1", "u1")

    for _ in range(50):
        if len(session.audio.spoken) == 2:
            break
        await asyncio.sleep(0.01)
    await active.scheduler.wait_detached()

    assert session.audio.spoken == ["Welcome to your tour in Paris", "Paris is lovely."]
    await orchestrator.stop_session("s1", "u1")
