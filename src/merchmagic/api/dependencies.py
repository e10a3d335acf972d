"""FastAPI dependencies for accessing application state."""

from fastapi import Request

from merchmagic.services.preferences import PreferenceStore
from merchmagic.services.studio import MockupStudio


def get_studio(request: Request) -> MockupStudio:
    """Get the session studio created during app lifespan.

    Example:
        >>> @router.get("/endpoint")
        >>> async def endpoint(studio: MockupStudio = Depends(get_studio)):
        ...     return studio.snapshot()
    """
    return request.app.state.studio


def get_preferences(request: Request) -> PreferenceStore:
    """Get the display preference store from app state."""
    return request.app.state.preferences
