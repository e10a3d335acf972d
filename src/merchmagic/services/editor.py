"""Single-mockup editor.

Each edit is one round trip to the image service using the mockup's current
image, so edits compose on the latest result. An EditorSession holds the
per-mockup busy flag, the last (dismissible) error and the local view state
(zoom, pan, flip, filter). View state never reaches the image service; it is
baked in only by the single-image export.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, Field

from merchmagic.models.mockup import InvalidStateTransition, Mockup, MockupStatus
from merchmagic.models.presets import (
    CUSTOM_BACKGROUND_PROMPT,
    DEFAULT_FILTER,
    FilterPreset,
    PresetKind,
    get_filter,
    get_preset,
)
from merchmagic.repositories.mockup import MockupRepository
from merchmagic.services.exceptions import (
    EditorBusyError,
    ImageServiceError,
    MockupNotFoundError,
    SafetyBlockedError,
)
from merchmagic.services.image_generation.gemini_client import GeminiClient
from merchmagic.services.image_generation.prompt_validator import validate_prompt

logger = structlog.get_logger(__name__)

MIN_SCALE = 0.5
MAX_SCALE = 4.0
SCALE_STEP = 0.25
SAFETY_HINT = "Tip: Avoid brand names, public figures, or sensitive descriptions."


class ViewState(BaseModel):
    """Local display transforms layered over the current image."""

    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    flipped: bool = False
    filter_name: str = DEFAULT_FILTER.name

    @property
    def filter(self) -> FilterPreset:
        return get_filter(self.filter_name)


class EditFailure(BaseModel):
    """User-facing description of a failed edit.

    retryable is True when resubmitting the same edit may succeed later
    (rate limits, server and network errors).
    """

    title: str
    message: str
    details: Optional[str] = None
    is_safety: bool = False
    categories: list[str] = Field(default_factory=list)
    hint: Optional[str] = None
    retryable: bool = False

    @classmethod
    def from_exception(cls, error: Exception) -> "EditFailure":
        if isinstance(error, SafetyBlockedError):
            return cls(
                title="Content Blocked",
                message=error.message,
                details=error.details,
                is_safety=True,
                categories=error.categories,
                hint=SAFETY_HINT,
            )
        if isinstance(error, ImageServiceError):
            details = error.details
            if details is None and error.status_code is not None:
                details = f"API Status Code: {error.status_code}"
            return cls(
                title="AI Refinement Error",
                message=error.message,
                details=details,
                retryable=error.retryable,
            )
        return cls(title="AI Refinement Error", message=str(error) or "AI Refinement failed")


class EditorSession:
    """Editor state for one mockup.

    Only one edit may be in flight per mockup; other mockups are unaffected.
    """

    def __init__(
        self,
        mockup_id: str,
        repository: MockupRepository,
        image_service: GeminiClient,
    ):
        self.mockup_id = mockup_id
        self.repository = repository
        self.image_service = image_service
        self.view = ViewState()
        self.error: Optional[EditFailure] = None
        self.busy = False

    # Service-backed edits

    async def apply_preset(self, kind: PresetKind, preset_id: str) -> Mockup:
        """Apply a rotation, lighting or background preset. The draft is not touched."""
        preset = get_preset(kind, preset_id)
        return await self._edit(preset.prompt, operation=f"{kind.value}:{preset.id}")

    async def apply_draft(self) -> Optional[Mockup]:
        """Submit the mockup's draft instruction; clears the draft on success.

        Returns:
            Updated mockup, or None if the draft is blank (no-op)
        """
        mockup = self._require_mockup()
        if not (mockup.draft_instruction or "").strip():
            return None
        draft = mockup.draft_instruction
        return await self._edit(draft, operation="draft", submitted_draft=draft)

    async def apply_background_image(self, background_image: Optional[str]) -> Optional[Mockup]:
        """Replace the background with an uploaded image.

        Returns:
            Updated mockup, or None if nothing was uploaded (no-op)
        """
        if not background_image:
            logger.debug("mockup.edit.skipped", mockup_id=self.mockup_id, reason="no_upload")
            return None
        return await self._edit(
            CUSTOM_BACKGROUND_PROMPT,
            operation="background_upload",
            background_image=background_image,
        )

    def dismiss_error(self) -> None:
        self.error = None

    # Local view transforms

    def zoom_in(self) -> ViewState:
        self.view.scale = min(self.view.scale + SCALE_STEP, MAX_SCALE)
        return self.view

    def zoom_out(self) -> ViewState:
        self.view.scale = max(self.view.scale - SCALE_STEP, MIN_SCALE)
        if self.view.scale <= 1:
            self.view.pan_x = 0.0
            self.view.pan_y = 0.0
        return self.view

    def pan(self, x: float, y: float) -> ViewState:
        """Move the zoomed view; ignored unless zoomed in."""
        if self.view.scale > 1:
            self.view.pan_x = x
            self.view.pan_y = y
        return self.view

    def toggle_flip(self) -> ViewState:
        self.view.flipped = not self.view.flipped
        return self.view

    def set_filter(self, name: str) -> ViewState:
        self.view.filter_name = get_filter(name).name
        return self.view

    def reset_view(self) -> ViewState:
        self.view = ViewState()
        return self.view

    # Internals

    def _require_mockup(self) -> Mockup:
        mockup = self.repository.get_by_id(self.mockup_id)
        if mockup is None:
            raise MockupNotFoundError(f"Mockup {self.mockup_id} not found")
        return mockup

    async def _edit(
        self,
        instruction: str,
        operation: str,
        submitted_draft: Optional[str] = None,
        background_image: Optional[str] = None,
    ) -> Mockup:
        if self.busy:
            raise EditorBusyError(f"An edit is already running for mockup {self.mockup_id}")

        mockup = self._require_mockup()
        if mockup.status != MockupStatus.READY:
            raise InvalidStateTransition(
                f"Cannot edit from {mockup.status.value}. Mockup must be in ready state."
            )
        prompt = validate_prompt(instruction)

        self.busy = True
        self.error = None
        logger.info("mockup.edit.started", mockup_id=self.mockup_id, operation=operation)
        try:
            image_url = await self.image_service.edit_mockup(
                mockup.image_url, prompt, background_image
            )
        except Exception as e:
            self.error = EditFailure.from_exception(e)
            logger.error(
                "mockup.edit.failed",
                mockup_id=self.mockup_id,
                operation=operation,
                error_type=type(e).__name__,
                is_safety=self.error.is_safety,
                categories=self.error.categories,
            )
            raise
        finally:
            self.busy = False

        updated = self.repository.update(
            self.mockup_id, lambda m: m.apply_edit(image_url, submitted_draft)
        )
        if updated is None:
            raise MockupNotFoundError(f"Mockup {self.mockup_id} was replaced during the edit")

        self.reset_view()
        logger.info("mockup.edit.succeeded", mockup_id=self.mockup_id, operation=operation)
        return updated
