"""Rendering job worker: one poller per job type, one job per tick."""
import asyncio
import uuid
from typing import Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from monitorify.config import settings
from monitorify.constants import JobType, PDF_PREFIX, SCREENSHOT_PREFIX
from monitorify.database import SessionLocal
from monitorify.models import GuestProject, Job
from monitorify.services.domain_guard import ensure_url_allowed
from monitorify.services.jobs import claim_next_job, mark_job_done, mark_job_error
from monitorify.services.renderer import PdfOptions, Renderer, ScreenshotOptions
from monitorify.services.storage import OutputStore
from monitorify.utils.exceptions import AppException, ProjectNotFound, RenderTimeout
from monitorify.utils.logger import logger
from monitorify.utils.time import utc_now
from monitorify.workers.polling import PollingLoop


class JobWorker(PollingLoop):
    """
    Claims and executes queued jobs of a single type.

    Subclasses define how a job is rendered and what the output file is
    called. Every failure is written to the job as an error; nothing
    escapes ``tick()``. A job interrupted by ``stop()`` is failed with
    "Worker stopped" before the cancellation propagates.
    """

    job_type: str = ""
    file_prefix: str = ""
    file_extension: str = ""
    failure_message: str = "Job failed"

    def __init__(
        self,
        renderer: Renderer,
        storage: OutputStore,
        session_factory: sessionmaker = SessionLocal,
        interval_seconds: Optional[float] = None,
        hard_timeout_seconds: Optional[float] = None,
        clock: Callable = utc_now,
    ):
        super().__init__(interval_seconds or settings.job_poll_interval_seconds)
        self.name = f"{self.job_type}-worker"
        self.renderer = renderer
        self.storage = storage
        self.session_factory = session_factory
        self.hard_timeout_seconds = hard_timeout_seconds or settings.render_hard_timeout_seconds
        self.clock = clock

    async def render(self, job: Job) -> bytes:
        raise NotImplementedError

    async def tick(self) -> Optional[uuid.UUID]:
        """
        Claim and run at most one job.

        Returns:
            The ID of the job that was processed, or None if the queue was empty
        """
        db = self.session_factory()
        try:
            job = claim_next_job(db, self.job_type, self.clock())
            if job is None:
                return None

            logger.info(f"[{self.name}] running job {job.id} ({job.target_url})")
            await self.execute(db, job)
            return job.id
        finally:
            db.close()

    async def execute(self, db: Session, job: Job) -> Job:
        """Run a claimed job and record its outcome."""
        filename = None
        try:
            project = db.get(GuestProject, job.guest_project_id)
            if project is None:
                raise ProjectNotFound()

            # Payload URLs come from clients; check again before rendering
            ensure_url_allowed(project.website_url, job.target_url)

            try:
                data = await asyncio.wait_for(self.render(job), timeout=self.hard_timeout_seconds)
            except asyncio.TimeoutError:
                raise RenderTimeout(f"Rendering timed out after {self.hard_timeout_seconds:g}s")

            filename = self.storage.put(data, self.file_prefix, self.file_extension)
            mark_job_done(db, job, self.storage.public_url(filename), self.clock())
            logger.info(f"[{self.name}] job {job.id} done: {job.result_file_url}")

        except AppException as e:
            logger.warning(f"[{self.name}] job {job.id} failed: {e.message}")
            self._fail(db, job, e.message, filename)
        except Exception as e:
            logger.error(f"[{self.name}] job {job.id} crashed: {e}", exc_info=True)
            self._fail(db, job, str(e) or self.failure_message, filename)
        except asyncio.CancelledError:
            logger.warning(f"[{self.name}] job {job.id} interrupted by shutdown")
            self._fail(db, job, "Worker stopped", filename)
            raise

        return job

    def _fail(self, db: Session, job: Job, message: str, filename: Optional[str]) -> None:
        db.rollback()
        if filename:
            self.storage.delete(filename)
        mark_job_error(db, job, message, self.clock())


class ScreenshotWorker(JobWorker):
    job_type = JobType.SCREENSHOT
    file_prefix = SCREENSHOT_PREFIX
    file_extension = "png"
    failure_message = "Screenshot failed"

    async def render(self, job: Job) -> bytes:
        options = ScreenshotOptions.from_payload(job.payload, settings.screenshot_timeout_ms)
        return await self.renderer.screenshot(job.target_url, options)


class PdfWorker(JobWorker):
    job_type = JobType.URL2PDF
    file_prefix = PDF_PREFIX
    file_extension = "pdf"
    failure_message = "PDF failed"

    async def render(self, job: Job) -> bytes:
        options = PdfOptions.from_payload(job.payload, settings.pdf_timeout_ms)
        return await self.renderer.pdf(job.target_url, options)
