"""Server-Sent Events routes feeding the web UI."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from controllers.stream_controller import photo_stream, transcription_stream

router = APIRouter(prefix="/api")


@router.get("/photo-stream")
async def photo_stream_route(request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
	try:
		return await photo_stream(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/transcription-stream")
async def transcription_stream_route(request: Request, user_id: Optional[str] = Query(default=None, alias="userId")):
	try:
		return await transcription_stream(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
