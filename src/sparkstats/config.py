"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Base URL for the frontend (for post-auth redirects)
    frontend_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("http://localhost:5173"),
        validation_alias=AliasChoices("FRONTEND_URL", "frontend_url"),
    )

    # Spotify OAuth settings. An empty client id is reported as an
    # authorization failure at sign-in time rather than at startup.
    spotify_client_id: str = Field(
        default="",
        validation_alias=AliasChoices("SPOTIFY_CLIENT_ID", "spotify_client_id"),
    )
    spotify_redirect_uri: str = Field(
        default="http://127.0.0.1:8888/api/spotify-auth/callback",
        validation_alias=AliasChoices(
            "SPOTIFY_REDIRECT_URI", "spotify_redirect_uri"
        ),
    )
    spotify_api_base_url: str = Field(
        default="https://api.spotify.com/v1",
        validation_alias=AliasChoices(
            "SPOTIFY_API_BASE_URL", "spotify_api_base_url"
        ),
    )

    credentials_dir: Path = Field(
        default_factory=lambda: Path("data/credentials"),
        validation_alias=AliasChoices("CREDENTIALS_DIR", "credentials_dir"),
    )
    credential_service: str = Field(
        default="com.sparkstats.spotify",
        validation_alias=AliasChoices("CREDENTIAL_SERVICE", "credential_service"),
    )

    request_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("REQUEST_TIMEOUT", "timeout"),
        ge=1,
    )
    api_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        validation_alias=AliasChoices("API_MAX_RETRIES", "api_max_retries"),
    )
    api_retry_delay: float = Field(
        default=1.0,
        ge=0,
        validation_alias=AliasChoices("API_RETRY_DELAY", "api_retry_delay"),
    )

    logging_settings_path: Path = Field(
        default_factory=lambda: Path("logging_settings.conf"),
        validation_alias=AliasChoices(
            "LOGGING_SETTINGS_PATH", "logging_settings_path"
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
