import asyncio

from fakes import FakeGeocoder, FakeLocation, FakeNarrator, FakeSession, NEW_YORK
from models.location_models import GeocodedPlace
from services.audio.speech import SpeechPlayer
from services.location.location_resolver import LocationResolver
from services.session.idle_narration import IdleNarrationLoop

NARRATION = "Just around the corner is the Flatiron Building, which dates to 1902. Madison Square Park is a lovely green space nearby."


def build_loop(registry, clock, narrator=None, geocoder=None, session=None):
    session = session or FakeSession(location=FakeLocation(dict(NEW_YORK)))
    registry.sessions.register("u1", session)
    resolver = LocationResolver(
        geocoder or FakeGeocoder(GeocodedPlace(city="New York", country="United States", formatted_address="5th Avenue, New York")),
        cache=registry.location_cache,
        clock=clock,
    )
    speech = SpeechPlayer(registry.sessions, registry.tracker, registry.idle_guard)
    loop = IdleNarrationLoop(
        registry.tracker,
        registry.idle_guard,
        registry.narration_history,
        resolver,
        narrator or FakeNarrator(nearby_text=NARRATION),
        speech,
        idle_threshold=30,
    )
    return loop, session


async def test_no_query_before_any_audio(registry, clock):
    loop, session = build_loop(registry, clock)
    clock.advance(120)
    assert await loop.check(session, "u1") is False


async def test_query_fires_only_after_threshold(registry, clock):
    narrator = FakeNarrator(nearby_text=NARRATION)
    loop, session = build_loop(registry, clock, narrator=narrator)
    registry.tracker.mark_started("u1")

    for _ in range(2):
        clock.advance(10)
        assert await loop.check(session, "u1") is False
    clock.advance(10)
    assert await loop.check(session, "u1") is True

    assert session.audio.spoken == [NARRATION]
    street, city, country, mentioned, previous = narrator.nearby_calls[0]
    assert (street, city, country) == ("5th Avenue", "New York", "United States")
    assert (mentioned, previous) == ([], [])
    assert "Flatiron Building" in registry.narration_history.mentioned_places("u1")
    assert "Madison Square Park" in registry.narration_history.mentioned_places("u1")
    assert registry.narration_history.previous_responses("u1") == [NARRATION]
    # playback restarted the idle window
    assert registry.tracker.last_started("u1") == clock.value
    assert not registry.idle_guard.is_set("u1")


async def test_guard_blocks_concurrent_queries(registry, clock):
    release = asyncio.Event()

    class SlowNarrator(FakeNarrator):
        async def nearby_places(self, *args, **kwargs):
            await release.wait()
            return await super().nearby_places(*args, **kwargs)

    narrator = SlowNarrator(nearby_text=NARRATION)
    loop, session = build_loop(registry, clock, narrator=narrator)
    registry.tracker.mark_started("u1")
    clock.advance(30)

    first = asyncio.create_task(loop.check(session, "u1"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert registry.idle_guard.is_set("u1")
    for _ in range(3):
        assert await loop.check(session, "u1") is False

    release.set()
    assert await first is True
    assert len(narrator.nearby_calls) == 1


async def test_failed_query_clears_guard_for_next_tick(registry, clock):
    narrator = FakeNarrator(nearby_text=None)
    loop, session = build_loop(registry, clock, narrator=narrator)
    registry.tracker.mark_started("u1")
    clock.advance(30)

    assert await loop.check(session, "u1") is True
    assert session.audio.spoken == []
    assert not registry.idle_guard.is_set("u1")

    clock.advance(10)
    assert await loop.check(session, "u1") is True
    assert len(narrator.nearby_calls) == 2


async def test_missing_city_skips_generation(registry, clock):
    narrator = FakeNarrator(nearby_text=NARRATION)
    loop, session = build_loop(registry, clock, narrator=narrator, geocoder=FakeGeocoder(None))
    registry.tracker.mark_started("u1")
    clock.advance(45)

    assert await loop.check(session, "u1") is True
    assert narrator.nearby_calls == []
    assert not registry.idle_guard.is_set("u1")


async def test_recent_audio_resets_guard(registry, clock):
    loop, session = build_loop(registry, clock)
    registry.tracker.mark_started("u1")
    registry.idle_guard.set("u1")
    clock.advance(5)
    assert await loop.check(session, "u1") is False
    assert not registry.idle_guard.is_set("u1")


async def test_history_is_passed_to_next_query(registry, clock):
    narrator = FakeNarrator(nearby_text=NARRATION)
    loop, session = build_loop(registry, clock, narrator=narrator)
    registry.tracker.mark_started("u1")
    clock.advance(30)
    await loop.check(session, "u1")
    clock.advance(31)
    await loop.check(session, "u1")

    _, _, _, mentioned, previous = narrator.nearby_calls[1]
    assert "Flatiron Building" in mentioned
    assert previous == [NARRATION]
