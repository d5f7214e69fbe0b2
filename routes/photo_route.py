"""FastAPI routes for retrieving captured photos."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from controllers.photo_controller import get_latest_photo, get_photo_base64, get_photo_bytes

router = APIRouter(prefix="/api")


@router.get("/latest-photo")
async def latest_photo_route(request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
	try:
		return await get_latest_photo(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/photo/{request_id}")
async def photo_route(request: Request, request_id: str, user_id: Optional[str] = Query(default=None, alias="userId")):
	"""Return the raw image bytes of a photo owned by the requesting user."""
	try:
		return await get_photo_bytes(request, request_id, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/photo-base64/{request_id}")
async def photo_base64_route(request: Request, request_id: str, user_id: Optional[str] = Query(default=None, alias="userId")):
	try:
		return await get_photo_base64(request, request_id, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
