"""Client for the external photo-analysis ("explanation") service."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Optional

import aiohttp

import config

LOGGER = logging.getLogger(__name__)

EXPLANATION_PATH = "/discoveries/create_and_send_explanation_text"

# Checked in order; the first non-empty string wins.
CANDIDATE_KEYS = (
    "explanation",
    "explanation_text",
    "explanationText",
    "text",
    "message",
    "summary",
)


def extract_explanation_text(payload: Any, _depth: int = 0) -> Optional[str]:
    """Pull the free-text explanation out of a JSON or plain-text response."""
    if not payload:
        return None
    if isinstance(payload, str):
        return payload.strip() or None
    if not isinstance(payload, dict):
        return None

    for key in CANDIDATE_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    nested = payload.get("data")
    if _depth == 0 and isinstance(nested, dict):
        return extract_explanation_text(nested, _depth=1)
    return None


def _dump(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload)
    except (TypeError, ValueError):
        return repr(payload)


class PhotoAnalysisClient:
    """Send photos for analysis and return the spoken explanation text.

    Failures never raise: any missing credential, transport error, non-2xx
    status or unrecognised payload yields None.
    """

    def __init__(
        self,
        base_url: str = config.PHOTO_ANALYSIS_API_BASE_URL,
        api_key: Optional[str] = config.PHOTO_ANALYSIS_API_KEY,
        persona_version_id: int = config.PHOTO_ANALYSIS_PERSONA_VERSION_ID,
        timeout_seconds: float = config.PHOTO_ANALYSIS_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.persona_version_id = persona_version_id
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _lazy_init(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # This instantiation must happen inside of an async event loop
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds))
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send_for_analysis(self, image_bytes: bytes, user_id: str) -> Optional[str]:
        """Post the photo and return the explanation text, or None."""
        if not self.api_key:
            LOGGER.warning("PHOTO_ANALYSIS_API_KEY is not set. Skipping photo analysis.")
            return None
        if not image_bytes:
            LOGGER.warning("Empty photo provided to photo analysis.")
            return None

        url = f"{self.base_url}{EXPLANATION_PATH}"
        body = {
            "photo": base64.b64encode(image_bytes).decode("utf-8"),
            "persona_version_id": self.persona_version_id,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            session = await self._lazy_init()
            async with session.post(url, json=body, headers=headers) as response:
                content_type = response.headers.get("Content-Type", "")
                if "application/json" in content_type:
                    payload = await response.json(content_type=None)
                else:
                    payload = await response.text()
                if response.status >= 400:
                    LOGGER.error("Photo analysis request failed (%s): %s", response.status, _dump(payload))
                    return None
        except Exception as exc:
            LOGGER.error("Error calling photo analysis service for user %s: %s", user_id, exc)
            return None

        explanation = extract_explanation_text(payload)
        if not explanation:
            LOGGER.warning("Photo analysis response did not include recognizable explanation text: %s", _dump(payload))
            return None

        LOGGER.info("Photo explanation for user %s: %s", user_id, explanation)
        return explanation
