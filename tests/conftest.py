import pytest

from fakes import ManualClock, make_image_bytes
from services.audio.activity_tracker import AudioActivityTracker
from services.registry import AppRegistry


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def registry(clock) -> AppRegistry:
    return AppRegistry(tracker=AudioActivityTracker(clock=clock))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")
