"""Job submission, claiming and finalization."""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from monitorify.constants import JobStatus, JobType
from monitorify.models import GuestProject, Job
from monitorify.services.domain_guard import ensure_url_allowed
from monitorify.utils.exceptions import NotFoundError, ValidationError
from monitorify.utils.logger import logger
from monitorify.utils.time import utc_now
from monitorify.utils.url import normalize_and_validate_url

JOB_TYPES = (JobType.SCREENSHOT, JobType.URL2PDF)


def enqueue_job(
    db: Session,
    project: GuestProject,
    job_type: str,
    payload: Dict[str, Any],
) -> Job:
    """
    Create a queued job after validating its target URL.

    The URL defaults to the project's website. Nothing is written when the
    URL is invalid or outside the project's domain.

    Raises:
        InvalidURL: If the URL is malformed
        DomainNotAllowed: If the URL is outside the project's domain
    """
    if job_type not in JOB_TYPES:
        raise ValidationError(f"Unknown job type: {job_type}")

    raw_url = (payload.get("url") or project.website_url or "").strip()
    ensure_url_allowed(project.website_url, raw_url)
    normalized = normalize_and_validate_url(raw_url)

    job = Job(
        type=job_type,
        status=JobStatus.QUEUED,
        guest_project_id=project.id,
        payload={**payload, "url": normalized},
        created_at=utc_now(),
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(f"Queued {job_type} job {job.id} for project {project.id}: {normalized}")
    return job


def get_job(db: Session, job_id: str | uuid.UUID) -> Job:
    """
    Load a job by ID.

    Raises:
        NotFoundError: If the ID is malformed or unknown
    """
    try:
        if isinstance(job_id, str):
            job_id = uuid.UUID(job_id)
    except ValueError:
        raise NotFoundError("Job not found")

    job = db.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


def try_claim_job(db: Session, job_id: uuid.UUID, now: Optional[datetime] = None) -> bool:
    """
    Move one job from queued to running.

    The update is conditional on the current status, so only one of several
    concurrent claimants sees a matched row.

    Returns:
        True if this caller now owns the job
    """
    result = db.execute(
        update(Job)
        .where(Job.id == job_id, Job.status == JobStatus.QUEUED)
        .values(status=JobStatus.RUNNING, started_at=now or utc_now())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def claim_next_job(
    db: Session,
    job_type: str,
    now: Optional[datetime] = None,
    max_attempts: int = 5,
) -> Optional[Job]:
    """
    Claim the oldest queued job of a type.

    Returns:
        The claimed job in running state, or None if nothing is queued
    """
    for _ in range(max_attempts):
        candidate = (
            db.query(Job.id)
            .filter(Job.type == job_type, Job.status == JobStatus.QUEUED)
            .order_by(Job.created_at.asc(), Job.id.asc())
            .first()
        )
        if candidate is None:
            return None

        if try_claim_job(db, candidate.id, now):
            return db.get(Job, candidate.id)

        # Another poller took it; look for the next one
        logger.debug(f"Job {candidate.id} was claimed elsewhere")

    return None


def mark_job_done(db: Session, job: Job, file_url: str, now: Optional[datetime] = None) -> Job:
    job.status = JobStatus.DONE
    job.result_file_url = file_url
    job.error_message = None
    job.finished_at = now or utc_now()
    db.commit()
    return job


def mark_job_error(db: Session, job: Job, message: str, now: Optional[datetime] = None) -> Job:
    job.status = JobStatus.ERROR
    job.result_file_url = None
    job.error_message = message
    job.finished_at = now or utc_now()
    db.commit()
    return job
