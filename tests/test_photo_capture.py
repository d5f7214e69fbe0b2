from datetime import datetime, timezone

from fakes import FakeSession, make_image_bytes
from services.photo.photo_capture import PhotoCapture, _capture_time
from services.photo.photo_store import PhotoStore
from services.realtime.event_stream import EventBroadcaster


def camera_photo(request_id, timestamp):
    return {"requestId": request_id, "buffer": make_image_bytes("JPEG"), "timestamp": timestamp}


async def test_mixed_timestamp_kinds_sort_together():
    photos = PhotoStore()
    capture = PhotoCapture(photos, EventBroadcaster("photos"))
    session = FakeSession()

    session.camera.photo = camera_photo("naive", datetime(2024, 1, 1, 12))
    assert await capture.capture(session, "u1") is not None
    session.camera.photo = camera_photo("epoch", 1700000000000)
    assert await capture.capture(session, "u1") is not None

    assert [photo.request_id for photo in photos.for_user("u1")] == ["epoch", "naive"]
    assert photos.latest_for_user("u1").request_id == "naive"


def test_capture_time_is_always_utc():
    assert _capture_time("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    assert _capture_time(datetime(2024, 5, 1, 12)).tzinfo == timezone.utc
    assert _capture_time(1700000000).year == 2023
    assert _capture_time(1700000000000) == _capture_time(1700000000)
    assert _capture_time("not a date").tzinfo == timezone.utc
    assert _capture_time(None).tzinfo == timezone.utc
