"""Per-user UI preferences kept in the device's simple storage."""

from __future__ import annotations

import logging
from typing import Any

LOGGER = logging.getLogger(__name__)

THEME_KEY = "theme"
THEMES = ("dark", "light")
DEFAULT_THEME = "dark"


def is_valid_theme(theme: Any) -> bool:
    return theme in THEMES


async def get_theme_preference(session: Any, user_id: str) -> str:
    """Return the stored theme, falling back to dark when unset, invalid or unreadable."""
    try:
        theme = await session.simple_storage.get(THEME_KEY)
    except Exception as exc:
        LOGGER.error("Error getting theme preference for user %s: %s", user_id, exc)
        return DEFAULT_THEME
    return theme if is_valid_theme(theme) else DEFAULT_THEME


async def set_theme_preference(session: Any, user_id: str, theme: str) -> None:
    """Persist the theme; storage failures propagate to the caller."""
    try:
        await session.simple_storage.set(THEME_KEY, theme)
    except Exception as exc:
        LOGGER.error("Error setting theme preference for user %s: %s", user_id, exc)
        raise
    LOGGER.info("Theme preference set to %s for user %s", theme, user_id)
