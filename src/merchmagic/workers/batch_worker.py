"""Batch generation worker pool.

Renders the uploaded logo onto every catalog product. One mockup is created
per template, all ids go into a FIFO queue, and a fixed number of workers
drain it. Each worker claims the head of the queue (queued → generating),
calls the image service, and records ready or error before claiming the next
id. A failed item never stops its worker or the batch.

Retry is separate from the pool: it claims one error mockup and renders it
with its original instruction in a task of its own.
"""

import asyncio
import time
import uuid
from typing import Optional

import structlog

from merchmagic.models.catalog import PRODUCT_TEMPLATES, ProductTemplate
from merchmagic.models.mockup import InvalidStateTransition, Mockup, MockupStatus
from merchmagic.repositories.mockup import MockupRepository
from merchmagic.services.exceptions import ImageServiceError, MockupNotFoundError
from merchmagic.services.image_generation.gemini_client import GeminiClient
from merchmagic.services.image_generation.prompt_validator import validate_prompt

logger = structlog.get_logger(__name__)


def build_mockups(templates: list[ProductTemplate]) -> list[Mockup]:
    """Create one queued mockup per template, in catalog order."""
    return [
        Mockup(
            id=f"m-{index}-{uuid.uuid4().hex[:12]}",
            product_type=template.name.value,
            original_instruction=template.prompt,
        )
        for index, template in enumerate(templates)
    ]


async def render_mockup(
    mockup: Mockup,
    logo: str,
    repository: MockupRepository,
    image_service: GeminiClient,
) -> MockupStatus:
    """Render one claimed mockup and record the outcome.

    The mockup must already be in generating state. Any failure of the
    service call or of storing its result is recorded as error and logged;
    nothing propagates.

    Args:
        mockup: Mockup snapshot taken when it was claimed
        logo: Source logo as a data URI
        repository: Owner of the mockup table
        image_service: Image service client

    Returns:
        Final status (ready or error)
    """
    start_time = time.time()
    logger.info(
        "mockup.generation.started",
        mockup_id=mockup.id,
        product_type=mockup.product_type,
    )

    try:
        prompt = validate_prompt(mockup.original_instruction)
        image_url = await image_service.generate_mockup(logo, prompt)
        updated = repository.update(mockup.id, lambda m: m.mark_ready(image_url))

    except Exception as e:
        if repository.update(mockup.id, lambda m: m.mark_failed()) is None:
            logger.warning("mockup.generation.discarded", mockup_id=mockup.id, reason="replaced")
        logger.error(
            "mockup.generation.failed",
            mockup_id=mockup.id,
            product_type=mockup.product_type,
            error_type=type(e).__name__,
            error_message=e.message if isinstance(e, ImageServiceError) else str(e),
            duration_seconds=time.time() - start_time,
        )
        return MockupStatus.ERROR

    if updated is None:
        logger.warning("mockup.generation.discarded", mockup_id=mockup.id, reason="replaced")
        return MockupStatus.READY

    logger.info(
        "mockup.generation.succeeded",
        mockup_id=mockup.id,
        product_type=mockup.product_type,
        duration_seconds=time.time() - start_time,
    )
    return MockupStatus.READY


class BatchPipeline:
    """Bounded-concurrency runner for one batch at a time.

    At most concurrency_limit service calls from the pool are in flight.
    """

    def __init__(
        self,
        repository: MockupRepository,
        image_service: GeminiClient,
        concurrency_limit: int = 2,
        templates: Optional[list[ProductTemplate]] = None,
    ):
        """Initialize the pipeline.

        Args:
            repository: Owner of the mockup table
            image_service: Image service client shared by all workers
            concurrency_limit: Number of workers (C >= 1)
            templates: Catalog to render (default: PRODUCT_TEMPLATES)
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")

        self.repository = repository
        self.image_service = image_service
        self.concurrency_limit = concurrency_limit
        self.templates = list(PRODUCT_TEMPLATES if templates is None else templates)
        self._running = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, logo: Optional[str]) -> Optional[asyncio.Task]:
        """Publish a fresh mockup set and start the workers.

        No-op without a logo or while a batch is running. The guard and the
        publish happen before this method returns, so a second call made
        right after the first is always ignored.

        Args:
            logo: Source logo as a data URI

        Returns:
            Task completing when the batch is done, or None if ignored
        """
        if not logo:
            logger.info("batch.skipped", reason="no_logo")
            return None
        if self._running:
            logger.info("batch.skipped", reason="already_running")
            return None

        self._running = True
        mockups = build_mockups(self.templates)
        self.repository.replace_all(mockups)

        logger.info(
            "batch.started",
            total=len(mockups),
            concurrency_limit=self.concurrency_limit,
        )

        return self._track(asyncio.create_task(self._drain([m.id for m in mockups], logo)))

    async def run(self, logo: Optional[str]) -> bool:
        """Start a batch and wait for it to finish.

        Returns:
            True if a batch ran, False if the call was a no-op
        """
        task = self.start(logo)
        if task is None:
            return False
        await task
        return True

    def retry(self, mockup_id: str, logo: Optional[str]) -> Optional[asyncio.Task]:
        """Re-render one error mockup with its original instruction.

        The mockup is claimed (error → generating) before this method
        returns. The render runs outside the worker pool.

        Args:
            mockup_id: Mockup to retry
            logo: Source logo as a data URI

        Returns:
            Task completing with the final status, or None without a logo

        Raises:
            MockupNotFoundError: If the id is not in the current set
            InvalidStateTransition: If the mockup is not in error state
        """
        mockup = self.repository.get_by_id(mockup_id)
        if mockup is None:
            raise MockupNotFoundError(f"Mockup {mockup_id} not found")
        if mockup.status != MockupStatus.ERROR:
            raise InvalidStateTransition(
                f"Cannot retry from {mockup.status.value}. Mockup must be in error state."
            )
        if not logo:
            logger.info("mockup.retry.skipped", mockup_id=mockup_id, reason="no_logo")
            return None

        claimed = self.repository.update(mockup_id, lambda m: m.mark_generating())
        logger.info("mockup.retry.started", mockup_id=mockup_id)
        return self._track(
            asyncio.create_task(render_mockup(claimed, logo, self.repository, self.image_service))
        )

    async def shutdown(self) -> None:
        """Cancel outstanding batch and retry tasks."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._running = False

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _drain(self, mockup_ids: list[str], logo: str) -> None:
        start_time = time.time()
        queue: asyncio.Queue[str] = asyncio.Queue()
        for mockup_id in mockup_ids:
            queue.put_nowait(mockup_id)

        try:
            results = await asyncio.gather(
                *(self._worker(index, queue, logo) for index in range(self.concurrency_limit)),
                return_exceptions=True,
            )
            for index, result in enumerate(results):
                if isinstance(result, Exception):
                    logger.error(
                        "batch.worker.crashed",
                        worker=index,
                        error_type=type(result).__name__,
                        error_message=str(result),
                    )
        finally:
            self._running = False

        stats = self.repository.get_stats()
        logger.info(
            "batch.completed",
            total=stats.total,
            ready=stats.ready,
            errors=stats.errors,
            duration_seconds=time.time() - start_time,
        )

    async def _worker(self, index: int, queue: asyncio.Queue, logo: str) -> None:
        while True:
            try:
                mockup_id = queue.get_nowait()
            except asyncio.QueueEmpty:
                logger.debug("batch.worker.idle", worker=index)
                return

            try:
                claimed = self.repository.update(mockup_id, lambda m: m.mark_generating())
                if claimed is None:
                    logger.warning("mockup.generation.discarded", mockup_id=mockup_id)
                    continue
                await render_mockup(claimed, logo, self.repository, self.image_service)
            finally:
                queue.task_done()
