"""Guest job endpoints: submit screenshot/PDF jobs and poll their status."""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from monitorify.auth.api_key import get_guest_project
from monitorify.constants import JobType
from monitorify.database import get_db
from monitorify.models import GuestProject
from monitorify.schemas.guest import PingResponse
from monitorify.schemas.jobs import JobCreatedResponse, PdfRequest, ScreenshotRequest, payload_from_request
from monitorify.services.jobs import enqueue_job, get_job
from monitorify.utils.exceptions import (
    DomainNotAllowed,
    InvalidURL,
    NotFoundError,
    domain_error,
    forbidden_error,
    handle_database_error,
    not_found_error,
)
from monitorify.utils.logger import logger
from monitorify.utils.serialization import serialize_datetime, serialize_job, serialize_uuid
from monitorify.utils.url import extract_host

router = APIRouter(prefix="/api", tags=["jobs"])


@router.get("/ping", response_model=PingResponse)
async def ping(project: GuestProject = Depends(get_guest_project)) -> PingResponse:
    """Check a guest key and show what it is scoped to."""
    return PingResponse(
        projectId=serialize_uuid(project.id),
        websiteUrl=project.website_url,
        allowedDomain=extract_host(project.website_url),
        expiresAt=serialize_datetime(project.expires_at),
    )


def _submit(db: Session, project: GuestProject, job_type: str, payload: Dict[str, Any]) -> JobCreatedResponse:
    try:
        job = enqueue_job(db, project, job_type, payload)
    except (InvalidURL, DomainNotAllowed) as e:
        raise domain_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to queue {job_type} job for project {project.id}: {e}", exc_info=True)
        raise handle_database_error(e, f"create_{job_type}_job")
    return JobCreatedResponse(jobId=serialize_uuid(job.id))


@router.post("/screenshot", response_model=JobCreatedResponse)
async def create_screenshot_job(
    request: ScreenshotRequest,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> JobCreatedResponse:
    """
    Queue a screenshot of a page on the project's website.

    The URL defaults to the website itself. Poll GET /api/jobs/{jobId} for
    the result.
    """
    return _submit(db, project, JobType.SCREENSHOT, payload_from_request(request))


@router.post("/url2pdf", response_model=JobCreatedResponse)
async def create_pdf_job(
    request: PdfRequest,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> JobCreatedResponse:
    """Queue a PDF render of a page on the project's website."""
    return _submit(db, project, JobType.URL2PDF, payload_from_request(request))


@router.get("/jobs/{job_id}")
async def get_job_status(
    job_id: str,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    """
    Get a job's status and, once done, its file URL.

    Raises:
        HTTPException: 404 if the job is unknown, 403 if another project owns it
    """
    try:
        job = get_job(db, job_id)
    except NotFoundError:
        raise not_found_error("Job")

    if job.guest_project_id != project.id:
        raise forbidden_error()

    return {"ok": True, "job": serialize_job(job)}
