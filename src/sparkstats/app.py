"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.api_logger import ApiLogger
from .api.endpoints import SpotifyEndpoints
from .api.interceptor import AuthInterceptor
from .api.pipeline import RequestPipeline
from .config import PROJECT_ROOT, get_settings
from .logging_settings import parse_logging_settings
from .repository import SpotifyRepository
from .routers.spotify import router as spotify_router
from .routers.spotify_auth import router as spotify_auth_router
from .services.credential_store import FileCredentialStore
from .services.spotify_auth import AuthSessionManager, SpotifyPKCEFlow
from .services.token_store import TokenStore

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_logging(terminal_level: int | None) -> None:
    """Configure logging from LOG_LEVEL/LOG_FILE and the terminal level.

    ``terminal_level`` of None disables console output.
    """

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))
        handlers.append(file_handler)

    if terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(max(log_level, terminal_level))
        console_handler.setFormatter(
            logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        )
        handlers.append(console_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("sparkstats").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Request lines are already logged by the API logger
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _resolve_under(base: Path, path: Path) -> Path:
    # Absolute paths are used as-is (tests, external mounts).
    if path.is_absolute():
        return path.resolve()
    resolved = (base / path).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Configured path {resolved} escapes project root {base}")
    return resolved


def create_app() -> FastAPI:
    # Load .env before reading LOG_LEVEL/LOG_FILE
    load_dotenv()

    settings = get_settings()
    project_root = PROJECT_ROOT.resolve()

    logging_settings = parse_logging_settings(
        _resolve_under(project_root, settings.logging_settings_path)
    )
    _configure_logging(logging_settings.terminal_level)

    credential_store = FileCredentialStore(
        _resolve_under(project_root, settings.credentials_dir),
        service=settings.credential_service,
    )
    token_store = TokenStore(credential_store)

    flow = SpotifyPKCEFlow(
        settings.spotify_client_id,
        settings.spotify_redirect_uri,
        requests_timeout=settings.request_timeout,
    )
    auth_manager = AuthSessionManager(
        token_store,
        flow,
        client_id=settings.spotify_client_id,
        redirect_uri=settings.spotify_redirect_uri,
    )
    if not settings.spotify_client_id:
        logger.warning("SPOTIFY_CLIENT_ID is not set; sign-in will fail until configured")

    pipeline = RequestPipeline(
        AuthInterceptor(token_store),
        timeout=settings.request_timeout,
        max_retries=settings.api_max_retries,
        retry_delay=settings.api_retry_delay,
        api_logger=ApiLogger(logging_settings.api_level),
    )
    repository = SpotifyRepository(
        pipeline,
        auth_manager,
        SpotifyEndpoints(settings.spotify_api_base_url),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await pipeline.aclose()

    app = FastAPI(
        title="SparkStats Backend",
        version="0.1.0",
        description="Spotify listening stats and playback backend.",
        lifespan=lifespan,
    )

    app.state.token_store = token_store
    app.state.auth_manager = auth_manager
    app.state.request_pipeline = pipeline
    app.state.spotify_repository = repository

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        spotify_auth_router,
        prefix="/api/spotify-auth",
        tags=["spotify-auth"],
    )
    app.include_router(spotify_router, prefix="/api/spotify", tags=["spotify"])

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str | bool]:
        return {
            "status": "ok",
            "auth_state": auth_manager.state.name,
            "authorized": auth_manager.is_authorized,
        }

    return app


__all__ = ["create_app"]
