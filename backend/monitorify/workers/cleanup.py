"""Cleanup sweeper for expired guest projects and orphaned artifacts."""
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from monitorify.config import settings
from monitorify.database import SessionLocal
from monitorify.models import GuestProject, Job, Monitor
from monitorify.services.storage import OutputStore
from monitorify.utils.logger import logger
from monitorify.utils.time import utc_now
from monitorify.workers.polling import PollingLoop


@dataclass
class CleanupReport:
    """What one sweep removed."""
    projects: int = 0
    jobs: int = 0
    monitors: int = 0
    files: int = 0
    orphan_files: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class CleanupSweeper(PollingLoop):
    """
    Deletes expired guest projects with everything they own, then removes
    generated files that have outlived any record pointing at them.

    Runs once at startup and then on a long interval. The two sweeps are
    independent; a failure in one is logged and the other still runs.
    """

    name = "cleanup-sweeper"

    def __init__(
        self,
        storage: OutputStore,
        session_factory: sessionmaker = SessionLocal,
        interval_seconds: Optional[float] = None,
        orphan_max_age_hours: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
        file_clock: Callable[[], float] = time.time,
    ):
        super().__init__(interval_seconds or settings.cleanup_interval_seconds, run_on_start=True)
        self.storage = storage
        self.session_factory = session_factory
        self.orphan_max_age_hours = orphan_max_age_hours or settings.orphan_max_age_hours
        self.clock = clock
        self.file_clock = file_clock

    async def tick(self) -> CleanupReport:
        report = CleanupReport()

        try:
            self.sweep_expired_projects(report)
        except Exception as e:
            logger.error(f"[{self.name}] expiry sweep failed: {e}", exc_info=True)

        try:
            self.sweep_orphan_files(report)
        except Exception as e:
            logger.error(f"[{self.name}] orphan sweep failed: {e}", exc_info=True)

        if any(report.to_dict().values()):
            logger.info(f"[{self.name}] removed {report.to_dict()}")
        return report

    def sweep_expired_projects(self, report: Optional[CleanupReport] = None) -> CleanupReport:
        """Delete projects past their expiry, their jobs, monitors and files."""
        report = report or CleanupReport()
        now = self.clock()

        db = self.session_factory()
        try:
            expired_ids = [
                row.id
                for row in db.query(GuestProject.id).filter(GuestProject.expires_at <= now).all()
            ]
            if not expired_ids:
                return report

            file_urls = [
                row.result_file_url
                for row in db.query(Job.result_file_url).filter(
                    Job.guest_project_id.in_(expired_ids),
                    Job.result_file_url.isnot(None),
                ).all()
            ]
            for file_url in file_urls:
                try:
                    if self.storage.delete_by_file_url(file_url):
                        report.files += 1
                except OSError as e:
                    logger.warning(f"[{self.name}] could not delete {file_url}: {e}")

            report.jobs += db.query(Job).filter(
                Job.guest_project_id.in_(expired_ids)
            ).delete(synchronize_session=False)
            report.monitors += db.query(Monitor).filter(
                Monitor.guest_project_id.in_(expired_ids)
            ).delete(synchronize_session=False)
            report.projects += db.query(GuestProject).filter(
                GuestProject.id.in_(expired_ids)
            ).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        return report

    def sweep_orphan_files(self, report: Optional[CleanupReport] = None) -> CleanupReport:
        """Delete generated files older than the max age, whatever references them."""
        report = report or CleanupReport()
        cutoff = self.file_clock() - self.orphan_max_age_hours * 3600

        for artifact in self.storage.iter_artifacts():
            if artifact.modified_at > cutoff:
                continue
            try:
                if self.storage.delete(artifact.name):
                    report.orphan_files += 1
            except OSError as e:
                logger.warning(f"[{self.name}] could not delete {artifact.name}: {e}")

        return report
