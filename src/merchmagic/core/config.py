"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Gemini Image Generation
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash-image", alias="GEMINI_MODEL")
    gemini_aspect_ratio: str = Field(default="1:1", alias="GEMINI_ASPECT_RATIO")

    # Batch pipeline
    concurrency_limit: int = Field(default=2, ge=1, alias="CONCURRENCY_LIMIT")

    # Export
    export_prefix: str = Field(default="merchmagic", alias="EXPORT_PREFIX")

    # Display preferences
    preferences_path: str = Field(default=".merchmagic/preferences.json", alias="PREFERENCES_PATH")
    default_theme: str = Field(default="light", alias="DEFAULT_THEME")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration on startup.

        Fails fast with a clear error message if the Gemini credential is missing.
        Validation is skipped in test environments.
        """
        if self.default_theme not in ("light", "dark"):
            raise ValueError(f"DEFAULT_THEME must be 'light' or 'dark', got {self.default_theme!r}")

        if self.app_env in ("test", "testing"):
            return self

        if not self.gemini_api_key:
            raise ValueError(
                "CRITICAL: Missing required environment variables:\n\n"
                "  - GEMINI_API_KEY: Create a key at https://aistudio.google.com/app/apikey\n\n"
                "The application cannot start without these variables.\n"
                "Please update your .env file and restart."
            )

        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.app_env == "production":
        renderer = structlog.processors.JSONRenderer()
        extra_processors = [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        extra_processors = []

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *extra_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
