"""Guest API key authentication."""
from typing import Optional
from fastapi import Header, Depends
from sqlalchemy.orm import Session

from monitorify.models import GuestProject
from monitorify.database import get_db
from monitorify.services.guest_projects import resolve_guest_project
from monitorify.utils.logger import logger
from monitorify.utils.exceptions import AppException, authentication_error


def get_guest_project(
    api_key: Optional[str] = Header(None, alias="X-API-Key", description="Guest API key"),
    db: Session = Depends(get_db),
) -> GuestProject:
    """
    Resolve the guest project for the X-API-Key header.

    Missing, malformed, unknown and expired keys all get the same 401 so
    callers cannot tell them apart.

    Raises:
        HTTPException: 401 if the key does not resolve to an active project
    """
    try:
        return resolve_guest_project(db, api_key)
    except AppException as e:
        logger.debug(f"Rejected guest key: {e.message}")
        raise authentication_error()
