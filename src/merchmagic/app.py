"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from merchmagic.api.routes import studio
from merchmagic.core.config import Settings, configure_logging
from merchmagic.services.image_generation.gemini_client import GeminiClient
from merchmagic.services.preferences import PreferenceStore
from merchmagic.services.studio import MockupStudio

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, create the Gemini client and the session studio
    - Shutdown: Cancel any batch or retry still running
    """
    settings = Settings()  # type: ignore[call-arg]

    configure_logging(settings)

    image_service = GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        aspect_ratio=settings.gemini_aspect_ratio,
    )

    # Store in app.state for access in routes
    app.state.studio = MockupStudio(
        image_service,
        concurrency_limit=settings.concurrency_limit,
        export_prefix=settings.export_prefix,
    )
    app.state.preferences = PreferenceStore(
        settings.preferences_path, default_theme=settings.default_theme
    )

    logger.info(
        "application.startup",
        model=settings.gemini_model,
        concurrency_limit=settings.concurrency_limit,
    )

    yield

    logger.info("application.shutdown")
    await app.state.studio.shutdown()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="MerchMagic API",
        description="Brand logo product mockup generation",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(studio.router)  # Studio router has prefix="/api/studio" in definition

    @app.get("/health")
    async def health_check():
        """Health check endpoint.

        Returns:
            200: {"status": "healthy", "generating": bool}
        """
        studio_state = getattr(app.state, "studio", None)
        return {
            "status": "healthy",
            "generating": bool(studio_state and studio_state.pipeline.is_running),
        }

    return app


# Create app instance for uvicorn
app = create_app()
