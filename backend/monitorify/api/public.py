"""Public endpoints (no API key)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from monitorify.database import get_db
from monitorify.schemas.guest import EndpointInfo, GenerateRequest, GenerateResponse
from monitorify.services.guest_projects import create_guest_project
from monitorify.utils.exceptions import InvalidURL, handle_database_error, validation_error
from monitorify.utils.logger import logger
from monitorify.utils.serialization import serialize_datetime, serialize_uuid
from monitorify.utils.url import extract_host

router = APIRouter(prefix="/public", tags=["public"])

GUEST_ENDPOINTS = [
    EndpointInfo(name="Meta Scrape", path="/api/meta-scrape", method="POST"),
    EndpointInfo(name="Screenshot (Job)", path="/api/screenshot", method="POST"),
    EndpointInfo(name="URL to PDF (Job)", path="/api/url2pdf", method="POST"),
    EndpointInfo(name="Job Status", path="/api/jobs/{jobId}", method="GET"),
    EndpointInfo(name="Monitors", path="/api/monitors", method="GET"),
]


@router.post("/generate", response_model=GenerateResponse)
async def generate_guest_key(
    request: GenerateRequest,
    db: Session = Depends(get_db),
) -> GenerateResponse:
    """
    Issue a 24-hour guest key scoped to a website.

    The raw key is only returned here; the database stores its hash.
    """
    try:
        issued = create_guest_project(db, request.url)
    except InvalidURL as e:
        raise validation_error(e.message)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to issue guest key for {request.url}: {e}", exc_info=True)
        raise handle_database_error(e, "generate_guest_key")

    project = issued.project
    return GenerateResponse(
        projectId=serialize_uuid(project.id),
        apiKey=issued.api_key,
        websiteUrl=project.website_url,
        allowedDomain=extract_host(project.website_url),
        expiresAt=serialize_datetime(project.expires_at),
        endpoints=GUEST_ENDPOINTS,
    )
