import inspect
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from routes.audio_route import router as audio_router
from routes.photo_route import router as photo_router
from routes.preference_route import router as preference_router
from routes.stream_route import router as stream_router
from services.location.location_resolver import LocationResolver
from services.location.reverse_geocoder import ReverseGeocoder
from services.openai.narration_generator import NarrationGenerator
from services.photo.photo_analysis import PhotoAnalysisClient
from services.registry import AppRegistry
from services.session.orchestrator import SessionOrchestrator

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
LOGGER = logging.getLogger(__name__)


def create_openai_client():
    """Return an AsyncOpenAI client, or None when no API key is configured."""
    if not config.OPENAI_API_KEY:
        LOGGER.warning("OPENAI_API_KEY is not set. City descriptions and nearby places are disabled.")
        return None
    try:
        return AsyncOpenAI(api_key=config.OPENAI_API_KEY)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def close_client(client) -> None:
    """Close a client exposing a sync or async close/aclose method."""
    if client is None:
        return
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        result = aclose()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        LOGGER.warning("Error while closing %s: %s", type(client).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the per-process registry (sessions, photos, caches, event streams)
      - the OpenAI async client, the photo-analysis client and the geocoder
      - the session orchestrator the glasses SDK adapter hands sessions to
    and attach them to `app.state`.
    """
    registry = AppRegistry()
    openai_client = create_openai_client()
    analysis_client = PhotoAnalysisClient()
    geocoder = ReverseGeocoder()
    resolver = LocationResolver(geocoder, cache=registry.location_cache)

    app.state.registry = registry
    app.state.openai_client = openai_client
    app.state.analysis_client = analysis_client
    app.state.orchestrator = SessionOrchestrator(
        registry,
        resolver,
        NarrationGenerator(openai_client),
        analysis_client,
    )
    LOGGER.info("Tour narrator ready (port %s)", config.PORT)

    try:
        yield
    finally:
        await app.state.orchestrator.shutdown()
        await close_client(analysis_client)
        await close_client(geocoder)
        await close_client(openai_client)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    # Serve static assets from the public directory, if it exists.
    if config.PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=config.PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = config.PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting which external services are configured.
        """
        registry = getattr(request.app.state, "registry", None)
        return {
            "ok": True,
            "openai_available": getattr(request.app.state, "openai_client", None) is not None,
            "photo_analysis_configured": bool(config.PHOTO_ANALYSIS_API_KEY),
            "active_sessions": len(list(registry.sessions.user_ids())) if registry else 0,
        }

    # Register application routers
    app.include_router(audio_router)
    app.include_router(photo_router)
    app.include_router(preference_router)
    app.include_router(stream_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
