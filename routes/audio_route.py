"""FastAPI routes that control audio playback on the glasses."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.audio_controller import play_audio, speak_text, stop_audio

router = APIRouter(prefix="/api")


class PlayAudioPayload(BaseModel):
	audio_url: Optional[str] = Field(default=None, alias="audioUrl")
	user_id: Optional[str] = Field(default=None, alias="userId")


class SpeakPayload(BaseModel):
	text: Optional[str] = None
	user_id: Optional[str] = Field(default=None, alias="userId")


class StopAudioPayload(BaseModel):
	user_id: Optional[str] = Field(default=None, alias="userId")


@router.post("/play-audio")
async def play_audio_route(request: Request, payload: PlayAudioPayload):
	try:
		return await play_audio(request, payload.audio_url, payload.user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/speak")
async def speak_route(request: Request, payload: SpeakPayload):
	try:
		return await speak_text(request, payload.text, payload.user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/stop-audio")
async def stop_audio_route(request: Request, payload: StopAudioPayload):
	try:
		return await stop_audio(request, payload.user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
