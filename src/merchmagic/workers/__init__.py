"""Background workers for async processing tasks."""

from merchmagic.workers.batch_worker import BatchPipeline, render_mockup

__all__ = ["BatchPipeline", "render_mockup"]
