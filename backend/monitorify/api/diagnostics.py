"""Page diagnostics endpoint (meta scrape)."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from monitorify.auth.api_key import get_guest_project
from monitorify.models import GuestProject
from monitorify.schemas.jobs import MetaScrapeRequest
from monitorify.services.diagnostics import PageDiagnostics, get_diagnostics
from monitorify.services.domain_guard import ensure_url_allowed
from monitorify.utils.exceptions import DomainNotAllowed, InvalidURL, RenderFailure, RenderTimeout, domain_error
from monitorify.utils.logger import logger
from monitorify.utils.url import normalize_and_validate_url

router = APIRouter(prefix="/api", tags=["diagnostics"])


@router.post("/meta-scrape")
async def meta_scrape(
    request: MetaScrapeRequest,
    project: GuestProject = Depends(get_guest_project),
    diagnostics: PageDiagnostics = Depends(get_diagnostics),
):
    """
    Render a page on the project's website and report its metadata,
    load timings, detected technology and page speed score.

    Runs synchronously; browser failures return 500 with ``{ok: false, error}``.
    """
    raw_url = (request.url or project.website_url or "").strip()
    try:
        ensure_url_allowed(project.website_url, raw_url)
        url = normalize_and_validate_url(raw_url)
    except (InvalidURL, DomainNotAllowed) as e:
        raise domain_error(e)

    try:
        return await diagnostics.inspect(url)
    except (RenderTimeout, RenderFailure) as e:
        logger.warning(f"Meta scrape failed for {url}: {e.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": e.message},
        )
