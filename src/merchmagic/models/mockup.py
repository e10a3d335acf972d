"""Mockup entity - one product render with lifecycle status tracking."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MockupStatus(str, Enum):
    """Mockup lifecycle status."""

    QUEUED = "queued"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid mockup state transition."""

    pass


class Mockup(BaseModel):
    """Mockup tracks the generation and edit lifecycle of one catalog product.

    Records live for the session only. The identity fields and the
    instruction used for the first render never change.
    """

    id: str = Field(frozen=True)
    product_type: str = Field(frozen=True)
    original_instruction: str = Field(frozen=True)
    image_url: str = ""
    status: MockupStatus = MockupStatus.QUEUED
    draft_instruction: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def mark_generating(self) -> None:
        """Transition to generating.

        Allowed from queued (first render), error (retry) and ready (edit in place).

        Raises:
            InvalidStateTransition: If a render is already in flight
        """
        if self.status == MockupStatus.GENERATING:
            raise InvalidStateTransition(
                f"Cannot mark generating from {self.status.value}. "
                "Mockup must be in queued, error or ready state."
            )
        self.status = MockupStatus.GENERATING

    def mark_ready(self, image_url: str) -> None:
        """Transition from generating to ready with the rendered image.

        Args:
            image_url: Rendered image as a data URI

        Raises:
            InvalidStateTransition: If current status is not generating
            ValueError: If image_url is empty
        """
        if self.status != MockupStatus.GENERATING:
            raise InvalidStateTransition(
                f"Cannot mark ready from {self.status.value}. Mockup must be in generating state."
            )
        if not image_url:
            raise ValueError("image_url is required")
        self.image_url = image_url
        self.status = MockupStatus.READY

    def mark_failed(self) -> None:
        """Transition from generating to error.

        The last successful image, if any, is kept.

        Raises:
            InvalidStateTransition: If current status is not generating
        """
        if self.status != MockupStatus.GENERATING:
            raise InvalidStateTransition(
                f"Cannot mark error from {self.status.value}. Mockup must be in generating state."
            )
        self.status = MockupStatus.ERROR

    def set_draft(self, text: Optional[str]) -> None:
        """Store a pending free-text instruction; empty text clears it."""
        self.draft_instruction = text or None

    def apply_edit(self, image_url: str, submitted_draft: Optional[str] = None) -> None:
        """Replace the image of a ready mockup with an edited render.

        Args:
            image_url: Edited image as a data URI
            submitted_draft: Draft text the edit was made from; the draft is
                cleared only if it still holds exactly this text

        Raises:
            InvalidStateTransition: If current status is not ready
            ValueError: If image_url is empty
        """
        if self.status != MockupStatus.READY:
            raise InvalidStateTransition(
                f"Cannot apply edit from {self.status.value}. Mockup must be in ready state."
            )
        if not image_url:
            raise ValueError("image_url is required")
        self.image_url = image_url
        if submitted_draft is not None and self.draft_instruction == submitted_draft:
            self.draft_instruction = None
