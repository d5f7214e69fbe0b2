"""FastAPI routes for per-user UI preferences."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from controllers.preference_controller import read_theme, write_theme

router = APIRouter(prefix="/api")


class ThemePayload(BaseModel):
	user_id: Optional[str] = Field(default=None, alias="userId")
	theme: Optional[str] = None


@router.get("/theme-preference")
async def get_theme_route(request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
	try:
		return await read_theme(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/theme-preference")
async def set_theme_route(request: Request, payload: ThemePayload):
	try:
		return await write_theme(request, payload.user_id, payload.theme)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
