"""Process-wide state for all connected users, owned by the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import config
from services.audio.activity_tracker import AudioActivityTracker
from services.location.location_resolver import CachedLocation
from services.photo.photo_store import PhotoStore
from services.realtime.event_stream import EventBroadcaster
from services.realtime.session_store import SessionStore
from services.session.narration_state import IdleQueryGuard, NarrationHistoryStore


@dataclass
class AppRegistry:
    """One map per concern, injected into the orchestrator and the controllers."""

    sessions: SessionStore = field(default_factory=SessionStore)
    photos: PhotoStore = field(default_factory=PhotoStore)
    location_cache: Dict[str, CachedLocation] = field(default_factory=dict)
    tracker: AudioActivityTracker = field(default_factory=AudioActivityTracker)
    idle_guard: IdleQueryGuard = field(default_factory=IdleQueryGuard)
    narration_history: NarrationHistoryStore = field(
        default_factory=lambda: NarrationHistoryStore(response_limit=config.RESPONSE_HISTORY_LIMIT)
    )
    photo_events: EventBroadcaster = field(default_factory=lambda: EventBroadcaster("photos"))
    transcription_events: EventBroadcaster = field(default_factory=lambda: EventBroadcaster("transcriptions"))
