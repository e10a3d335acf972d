"""Session facade tying the logo, mockup table, pipeline, editors and export together."""

import asyncio
from typing import Optional

import structlog
from pydantic import BaseModel

from merchmagic.models.catalog import ProductTemplate
from merchmagic.models.mockup import Mockup
from merchmagic.models.presets import is_quick_snippet
from merchmagic.repositories.mockup import MockupRepository, StudioStats
from merchmagic.services.editor import EditorSession
from merchmagic.services.exceptions import MockupNotFoundError
from merchmagic.services.export import ExportFile, build_archive, export_single
from merchmagic.services.image_generation.gemini_client import GeminiClient
from merchmagic.workers.batch_worker import BatchPipeline

logger = structlog.get_logger(__name__)


class StudioSummary(StudioStats):
    """Stats plus whether a batch is running."""

    is_generating: bool
    has_logo: bool


class StudioSnapshot(BaseModel):
    """Full view of the session for the front end."""

    summary: StudioSummary
    mockups: list[Mockup]


class MockupStudio:
    """One user session: uploaded logo, current mockup set and open editors.

    Editor sessions are keyed by mockup id and dropped whenever a new batch
    replaces the mockup set.
    """

    def __init__(
        self,
        image_service: GeminiClient,
        concurrency_limit: int = 2,
        templates: Optional[list[ProductTemplate]] = None,
        export_prefix: str = "merchmagic",
    ):
        self.image_service = image_service
        self.export_prefix = export_prefix
        self.repository = MockupRepository()
        self.pipeline = BatchPipeline(
            self.repository,
            image_service,
            concurrency_limit=concurrency_limit,
            templates=templates,
        )
        self.logo: Optional[str] = None
        self._editors: dict[str, EditorSession] = {}

    # Logo and batch

    def set_logo(self, image: Optional[str]) -> bool:
        """Store the uploaded logo. An empty upload is ignored.

        Returns:
            True if the logo was replaced
        """
        if not image:
            logger.debug("studio.logo.skipped", reason="empty_upload")
            return False
        self.logo = image
        logger.info("studio.logo.uploaded", size=len(image))
        return True

    def start_batch(self) -> Optional[asyncio.Task]:
        """Start a batch for the current logo (no-op without logo or while running)."""
        task = self.pipeline.start(self.logo)
        if task is not None:
            self._editors.clear()
        return task

    def retry(self, mockup_id: str) -> Optional[asyncio.Task]:
        """Retry one error mockup with its original instruction."""
        return self.pipeline.retry(mockup_id, self.logo)

    # Queries

    def get_mockup(self, mockup_id: str) -> Mockup:
        """Return one mockup.

        Raises:
            MockupNotFoundError: If the id is not in the current set
        """
        mockup = self.repository.get_by_id(mockup_id)
        if mockup is None:
            raise MockupNotFoundError(f"Mockup {mockup_id} not found")
        return mockup

    def get_summary(self) -> StudioSummary:
        stats = self.repository.get_stats()
        return StudioSummary(
            **stats.model_dump(),
            is_generating=self.pipeline.is_running,
            has_logo=self.logo is not None,
        )

    def snapshot(self) -> StudioSnapshot:
        return StudioSnapshot(summary=self.get_summary(), mockups=self.repository.list_all())

    # Drafts

    def set_draft(self, mockup_id: str, text: Optional[str]) -> Mockup:
        """Store the pending free-text instruction on the mockup."""
        updated = self.repository.update(mockup_id, lambda m: m.set_draft(text))
        if updated is None:
            raise MockupNotFoundError(f"Mockup {mockup_id} not found")
        return updated

    def apply_snippet(self, mockup_id: str, snippet: str) -> Mockup:
        """Fill the draft from a quick-style snippet and clear the editor error.

        Raises:
            ValueError: If snippet is not one of the offered quick styles
        """
        if not is_quick_snippet(snippet):
            raise ValueError(f"Unknown quick-style snippet: {snippet}")
        updated = self.set_draft(mockup_id, snippet)
        self.editor(mockup_id).dismiss_error()
        return updated

    # Editor

    def editor(self, mockup_id: str) -> EditorSession:
        """Return the editor session for a mockup, creating it on first use."""
        self.get_mockup(mockup_id)
        session = self._editors.get(mockup_id)
        if session is None:
            session = EditorSession(mockup_id, self.repository, self.image_service)
            self._editors[mockup_id] = session
        return session

    # Export

    def export_archive(self) -> Optional[ExportFile]:
        """Zip every ready mockup; None when nothing is ready."""
        return build_archive(self.repository.get_ready(), prefix=self.export_prefix)

    def export_mockup(self, mockup_id: str) -> ExportFile:
        """Export one mockup with the editor's filter and flip baked in."""
        mockup = self.get_mockup(mockup_id)
        view = self.editor(mockup_id).view
        return export_single(mockup, view.filter, view.flipped, prefix=self.export_prefix)

    async def shutdown(self) -> None:
        await self.pipeline.shutdown()
