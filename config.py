"""
Configuration for the tour narrator service.

Values are read from environment variables (a `.env` file is loaded first
if present). Credentials are optional at startup: features that need them
log a warning and skip the call when they are missing.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"
PROMPTS_DIR = BASE_DIR / "prompts"

# ============================================
# SERVER
# ============================================

PORT = _env_int("PORT", 3000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ============================================
# EXTERNAL SERVICES
# ============================================

# Text generation (OpenAI chat completions)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
CITY_DESCRIPTION_MAX_TOKENS = _env_int("CITY_DESCRIPTION_MAX_TOKENS", 150)
NEARBY_PLACES_MAX_TOKENS = _env_int("NEARBY_PLACES_MAX_TOKENS", 300)

# Photo analysis service
PHOTO_ANALYSIS_API_BASE_URL = os.getenv("PHOTO_ANALYSIS_API_BASE_URL", "http://localhost:3000/api")
PHOTO_ANALYSIS_API_KEY = os.getenv("PHOTO_ANALYSIS_API_KEY")
PHOTO_ANALYSIS_PERSONA_VERSION_ID = _env_int("PHOTO_ANALYSIS_PERSONA_VERSION_ID", 43)
PHOTO_ANALYSIS_TIMEOUT_SECONDS = _env_float("PHOTO_ANALYSIS_TIMEOUT_SECONDS", 30.0)

# Reverse geocoding (Nominatim)
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "tour-narrator")
GEOCODER_TIMEOUT_SECONDS = _env_float("GEOCODER_TIMEOUT_SECONDS", 10.0)
# Nominatim usage policy: at most one request per second per application.
GEOCODER_MIN_DELAY_SECONDS = _env_float("GEOCODER_MIN_DELAY_SECONDS", 1.0)

# ============================================
# NARRATION TIMING
# ============================================

IDLE_THRESHOLD_SECONDS = _env_float("IDLE_THRESHOLD_SECONDS", 30.0)
IDLE_POLL_INTERVAL_SECONDS = _env_float("IDLE_POLL_INTERVAL_SECONDS", 10.0)
LOCATION_CACHE_TTL_SECONDS = _env_float("LOCATION_CACHE_TTL_SECONDS", 30.0)
WELCOME_DELAY_SECONDS = _env_float("WELCOME_DELAY_SECONDS", 1.0)
CITY_DESCRIPTION_DELAY_SECONDS = _env_float("CITY_DESCRIPTION_DELAY_SECONDS", 3.0)

# Narration history
RESPONSE_HISTORY_LIMIT = _env_int("RESPONSE_HISTORY_LIMIT", 5)
MAX_EXTRACTED_PLACE_NAMES = _env_int("MAX_EXTRACTED_PLACE_NAMES", 5)
# Keep "don't repeat these places" across reconnects unless asked otherwise.
CLEAR_NARRATION_HISTORY_ON_STOP = _env_bool("CLEAR_NARRATION_HISTORY_ON_STOP", False)
