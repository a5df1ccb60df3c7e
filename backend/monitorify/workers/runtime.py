"""Wires the background pollers together and manages their lifecycle."""
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from monitorify.database import SessionLocal
from monitorify.services.renderer import Renderer, build_renderer
from monitorify.services.storage import OutputStore
from monitorify.utils.logger import logger
from monitorify.workers.cleanup import CleanupSweeper
from monitorify.workers.job_worker import PdfWorker, ScreenshotWorker
from monitorify.workers.monitor_scheduler import MonitorScheduler
from monitorify.workers.polling import PollingLoop


class WorkerRuntime:
    """The set of pollers that run alongside the API (or in the ARQ worker)."""

    def __init__(
        self,
        screenshot_worker: ScreenshotWorker,
        pdf_worker: PdfWorker,
        monitor_scheduler: MonitorScheduler,
        cleanup_sweeper: CleanupSweeper,
    ):
        self.screenshot_worker = screenshot_worker
        self.pdf_worker = pdf_worker
        self.monitor_scheduler = monitor_scheduler
        self.cleanup_sweeper = cleanup_sweeper

    @property
    def loops(self) -> List[PollingLoop]:
        return [
            self.screenshot_worker,
            self.pdf_worker,
            self.monitor_scheduler,
            self.cleanup_sweeper,
        ]

    def start_all(self) -> None:
        for loop in self.loops:
            loop.start()
        logger.info(f"Started {len(self.loops)} background worker(s)")

    async def stop_all(self) -> None:
        for loop in self.loops:
            await loop.stop()
        logger.info("Background workers stopped")


def build_runtime(
    renderer: Optional[Renderer] = None,
    storage: Optional[OutputStore] = None,
    session_factory: sessionmaker = SessionLocal,
) -> WorkerRuntime:
    """Build the runtime with the configured renderer, store and database."""
    renderer = renderer or build_renderer()
    storage = storage or OutputStore()
    storage.ensure_root()

    return WorkerRuntime(
        screenshot_worker=ScreenshotWorker(renderer, storage, session_factory=session_factory),
        pdf_worker=PdfWorker(renderer, storage, session_factory=session_factory),
        monitor_scheduler=MonitorScheduler(session_factory=session_factory),
        cleanup_sweeper=CleanupSweeper(storage, session_factory=session_factory),
    )
