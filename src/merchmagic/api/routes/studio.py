"""Mockup studio API endpoints.

This module implements REST endpoints for the mockup workflow:
- PUT /api/studio/logo - Upload the brand logo
- POST /api/studio/batch - Generate the full product suite
- POST /api/studio/mockups/{id}/retry - Retry a failed mockup
- POST /api/studio/mockups/{id}/edits/* - Refine one mockup via the image service
- POST /api/studio/mockups/{id}/view - Local zoom/pan/flip/filter
- GET /api/studio/export - Download all ready mockups as a zip
- GET /api/studio/mockups/{id}/export - Download one mockup as PNG

Images travel as data URIs in JSON bodies.
"""

from typing import Literal, NoReturn, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from merchmagic.api.dependencies import get_preferences, get_studio
from merchmagic.models.catalog import PRODUCT_TEMPLATES, ProductTemplate
from merchmagic.models.mockup import InvalidStateTransition, Mockup
from merchmagic.models.presets import (
    BACKGROUND_PRESETS,
    FILTER_PRESETS,
    LIGHTING_PRESETS,
    PROMPT_CATEGORIES,
    ROTATION_PRESETS,
    EditPreset,
    FilterPreset,
    PresetKind,
)
from merchmagic.services.editor import EditFailure, EditorSession, ViewState
from merchmagic.services.exceptions import (
    EditorBusyError,
    ExportError,
    ImageServiceError,
    MockupNotFoundError,
    NoImageToExportError,
)
from merchmagic.services.export import ExportFile
from merchmagic.services.preferences import PreferenceStore
from merchmagic.services.studio import MockupStudio, StudioSnapshot, StudioSummary

logger = structlog.get_logger()
router = APIRouter(prefix="/api/studio", tags=["studio"])


# Request/Response Models


class LogoUploadRequest(BaseModel):
    """Request model for logo upload."""

    image: Optional[str] = Field(
        default=None,
        description="Logo as a data URI (data:image/png;base64,...). Empty uploads are ignored.",
    )


class BatchStartResponse(BaseModel):
    """Response model for batch start requests."""

    started: bool = Field(..., description="False when the request was ignored")
    summary: StudioSummary
    mockups: list[Mockup]


class RetryResponse(BaseModel):
    """Response model for retry requests."""

    started: bool = Field(..., description="False when no logo is available")
    mockup: Mockup


class DraftRequest(BaseModel):
    """Request model for updating a mockup's pending instruction."""

    text: Optional[str] = Field(default=None, max_length=2000)


class SnippetRequest(BaseModel):
    """Request model for filling the draft from a quick-style snippet."""

    snippet: str


class PresetEditRequest(BaseModel):
    """Request model for preset-driven edits."""

    kind: PresetKind
    preset_id: str


class BackgroundUploadRequest(BaseModel):
    """Request model for custom background uploads."""

    image: Optional[str] = Field(default=None, description="Background image as a data URI")


class ViewRequest(BaseModel):
    """Request model for local view transforms."""

    action: Literal["zoom_in", "zoom_out", "pan", "flip", "filter", "reset"]
    x: float = 0.0
    y: float = 0.0
    filter_name: Optional[str] = None


class EditorStateResponse(BaseModel):
    """Editor session state for one mockup."""

    mockup: Mockup
    busy: bool
    error: Optional[EditFailure] = None
    view: ViewState


class CatalogResponse(BaseModel):
    """Product catalog and edit presets."""

    products: list[ProductTemplate]
    rotation_presets: list[EditPreset]
    lighting_presets: list[EditPreset]
    background_presets: list[EditPreset]
    quick_styles: dict[str, list[str]]
    filters: list[FilterPreset]


class ThemeRequest(BaseModel):
    theme: Literal["light", "dark"]


class ThemeResponse(BaseModel):
    theme: str


# Helpers


def _not_found(e: MockupNotFoundError) -> NoReturn:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _editor_state(studio: MockupStudio, session: EditorSession) -> EditorStateResponse:
    return EditorStateResponse(
        mockup=studio.get_mockup(session.mockup_id),
        busy=session.busy,
        error=session.error,
        view=session.view,
    )


def _download(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


async def _run_edit(studio: MockupStudio, mockup_id: str, operation) -> EditorStateResponse:
    """Run an editor coroutine factory and translate errors to HTTP responses."""
    try:
        session = studio.editor(mockup_id)
        await operation(session)
        return _editor_state(studio, session)
    except MockupNotFoundError as e:
        _not_found(e)
    except (InvalidStateTransition, EditorBusyError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ImageServiceError as e:
        failure = session.error or EditFailure.from_exception(e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=failure.model_dump())


# API Endpoints


@router.get("", response_model=StudioSnapshot)
async def get_studio_state(studio: MockupStudio = Depends(get_studio)) -> StudioSnapshot:
    """Return progress stats and every mockup of the current batch.

    Progress counts both ready and error mockups as done.
    """
    return studio.snapshot()


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog() -> CatalogResponse:
    """Return product templates and all edit presets."""
    return CatalogResponse(
        products=PRODUCT_TEMPLATES,
        rotation_presets=ROTATION_PRESETS,
        lighting_presets=LIGHTING_PRESETS,
        background_presets=BACKGROUND_PRESETS,
        quick_styles=PROMPT_CATEGORIES,
        filters=FILTER_PRESETS,
    )


@router.put("/logo", response_model=StudioSummary)
async def upload_logo(
    request: LogoUploadRequest, studio: MockupStudio = Depends(get_studio)
) -> StudioSummary:
    """Store the brand logo used by the next batch. Empty uploads are ignored."""
    studio.set_logo(request.image)
    return studio.get_summary()


@router.post("/batch", response_model=BatchStartResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_batch(studio: MockupStudio = Depends(get_studio)) -> BatchStartResponse:
    """Start generating the full product suite.

    Ignored (started=false) when no logo is uploaded or a batch is running.
    The workers continue in the background; poll GET /api/studio for progress.
    """
    task = studio.start_batch()
    snapshot = studio.snapshot()
    return BatchStartResponse(
        started=task is not None, summary=snapshot.summary, mockups=snapshot.mockups
    )


@router.get("/mockups/{mockup_id}", response_model=Mockup)
async def get_mockup(mockup_id: str, studio: MockupStudio = Depends(get_studio)) -> Mockup:
    try:
        return studio.get_mockup(mockup_id)
    except MockupNotFoundError as e:
        _not_found(e)


@router.post(
    "/mockups/{mockup_id}/retry",
    response_model=RetryResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def retry_mockup(mockup_id: str, studio: MockupStudio = Depends(get_studio)) -> RetryResponse:
    """Re-render a failed mockup with its original catalog instruction."""
    try:
        task = studio.retry(mockup_id)
        return RetryResponse(started=task is not None, mockup=studio.get_mockup(mockup_id))
    except MockupNotFoundError as e:
        _not_found(e)
    except InvalidStateTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/mockups/{mockup_id}/draft", response_model=Mockup)
async def update_draft(
    mockup_id: str, request: DraftRequest, studio: MockupStudio = Depends(get_studio)
) -> Mockup:
    """Save the pending free-text instruction so it survives re-renders."""
    try:
        return studio.set_draft(mockup_id, request.text)
    except MockupNotFoundError as e:
        _not_found(e)


@router.post("/mockups/{mockup_id}/draft/snippet", response_model=Mockup)
async def apply_snippet(
    mockup_id: str, request: SnippetRequest, studio: MockupStudio = Depends(get_studio)
) -> Mockup:
    """Fill the draft with a quick-style snippet (no image service call)."""
    try:
        return studio.apply_snippet(mockup_id, request.snippet)
    except MockupNotFoundError as e:
        _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/mockups/{mockup_id}/editor", response_model=EditorStateResponse)
async def get_editor(
    mockup_id: str, studio: MockupStudio = Depends(get_studio)
) -> EditorStateResponse:
    try:
        return _editor_state(studio, studio.editor(mockup_id))
    except MockupNotFoundError as e:
        _not_found(e)


@router.delete("/mockups/{mockup_id}/editor/error", response_model=EditorStateResponse)
async def dismiss_editor_error(
    mockup_id: str, studio: MockupStudio = Depends(get_studio)
) -> EditorStateResponse:
    try:
        session = studio.editor(mockup_id)
        session.dismiss_error()
        return _editor_state(studio, session)
    except MockupNotFoundError as e:
        _not_found(e)


@router.post("/mockups/{mockup_id}/edits/preset", response_model=EditorStateResponse)
async def edit_with_preset(
    mockup_id: str, request: PresetEditRequest, studio: MockupStudio = Depends(get_studio)
) -> EditorStateResponse:
    """Apply a rotation, lighting or background preset to the current image.

    Returns 502 with the edit failure (including safety categories) if the
    image service rejects the edit; the mockup keeps its previous image.
    """
    return await _run_edit(
        studio, mockup_id, lambda session: session.apply_preset(request.kind, request.preset_id)
    )


@router.post("/mockups/{mockup_id}/edits/draft", response_model=EditorStateResponse)
async def edit_with_draft(
    mockup_id: str, studio: MockupStudio = Depends(get_studio)
) -> EditorStateResponse:
    """Submit the mockup's draft instruction. A blank draft is a no-op."""
    return await _run_edit(studio, mockup_id, lambda session: session.apply_draft())


@router.post("/mockups/{mockup_id}/edits/background", response_model=EditorStateResponse)
async def edit_with_background(
    mockup_id: str, request: BackgroundUploadRequest, studio: MockupStudio = Depends(get_studio)
) -> EditorStateResponse:
    """Replace the background with an uploaded image. An empty upload is a no-op."""
    return await _run_edit(
        studio, mockup_id, lambda session: session.apply_background_image(request.image)
    )


@router.post("/mockups/{mockup_id}/view", response_model=ViewState)
async def update_view(
    mockup_id: str, request: ViewRequest, studio: MockupStudio = Depends(get_studio)
) -> ViewState:
    """Apply a local view transform. Never calls the image service."""
    try:
        session = studio.editor(mockup_id)
    except MockupNotFoundError as e:
        _not_found(e)

    if request.action == "zoom_in":
        return session.zoom_in()
    if request.action == "zoom_out":
        return session.zoom_out()
    if request.action == "pan":
        return session.pan(request.x, request.y)
    if request.action == "flip":
        return session.toggle_flip()
    if request.action == "reset":
        return session.reset_view()

    try:
        return session.set_filter(request.filter_name or "")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/mockups/{mockup_id}/export")
async def export_mockup(mockup_id: str, studio: MockupStudio = Depends(get_studio)) -> Response:
    """Download one mockup as PNG with the active filter and flip applied.

    Returns 409 while the mockup has no rendered image.
    """
    try:
        return _download(studio.export_mockup(mockup_id))
    except MockupNotFoundError as e:
        _not_found(e)
    except NoImageToExportError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/export")
async def export_archive(studio: MockupStudio = Depends(get_studio)) -> Response:
    """Download every ready mockup as one zip archive.

    Returns 204 without a body when no mockup is ready.
    """
    try:
        export = studio.export_archive()
    except ExportError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if export is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _download(export)


@router.get("/preferences/theme", response_model=ThemeResponse)
async def get_theme(preferences: PreferenceStore = Depends(get_preferences)) -> ThemeResponse:
    return ThemeResponse(theme=preferences.get_theme())


@router.put("/preferences/theme", response_model=ThemeResponse)
async def set_theme(
    request: ThemeRequest, preferences: PreferenceStore = Depends(get_preferences)
) -> ThemeResponse:
    return ThemeResponse(theme=preferences.set_theme(request.theme))


@router.post("/preferences/theme/toggle", response_model=ThemeResponse)
async def toggle_theme(preferences: PreferenceStore = Depends(get_preferences)) -> ThemeResponse:
    return ThemeResponse(theme=preferences.toggle_theme())
