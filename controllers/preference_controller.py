"""Controllers for per-user UI preferences."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from services.preferences import get_theme_preference, is_valid_theme, set_theme_preference
from utils.request_validation import require_session, require_user_id


async def read_theme(request: Request, user_id: Optional[str]) -> Dict[str, Any]:
    user_id = require_user_id(user_id)
    session = require_session(request.app.state.registry.sessions, user_id)
    theme = await get_theme_preference(session, user_id)
    return {"theme": theme, "userId": user_id}


async def write_theme(request: Request, user_id: Optional[str], theme: Optional[str]) -> Dict[str, Any]:
    user_id = require_user_id(user_id)
    if not is_valid_theme(theme):
        raise HTTPException(status_code=400, detail='theme must be "dark" or "light"')
    session = require_session(request.app.state.registry.sessions, user_id)
    await set_theme_preference(session, user_id, theme)
    return {"success": True, "theme": theme, "userId": user_id}
