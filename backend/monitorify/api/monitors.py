"""Uptime monitor endpoints for guest projects."""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from monitorify.auth.api_key import get_guest_project
from monitorify.database import get_db
from monitorify.models import GuestProject
from monitorify.schemas.monitors import MonitorCreate, MonitorUpdate
from monitorify.services import monitors as monitor_service
from monitorify.utils.exceptions import (
    DomainNotAllowed,
    InvalidURL,
    MonitorLimitReached,
    NotFoundError,
    domain_error,
    handle_database_error,
    not_found_error,
    validation_error,
)
from monitorify.utils.logger import logger
from monitorify.utils.serialization import serialize_monitor

router = APIRouter(prefix="/api/monitors", tags=["monitors"])


@router.get("")
async def list_monitors(
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    """List the project's monitors, newest first."""
    try:
        monitors = monitor_service.list_monitors(db, project)
    except Exception as e:
        logger.error(f"Failed to list monitors for project {project.id}: {e}", exc_info=True)
        raise handle_database_error(e, "list_monitors")
    return {"ok": True, "monitors": [serialize_monitor(m) for m in monitors]}


@router.post("")
async def create_monitor(
    request: MonitorCreate,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    """
    Create a monitor for a URL on the project's website.

    Raises:
        HTTPException: 400 for a bad URL or when the monitor limit is reached,
            403 when the URL is on another domain
    """
    try:
        monitor = monitor_service.create_monitor(db, project, request)
    except (InvalidURL, DomainNotAllowed) as e:
        raise domain_error(e)
    except MonitorLimitReached as e:
        raise validation_error(e.message)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create monitor for project {project.id}: {e}", exc_info=True)
        raise handle_database_error(e, "create_monitor")
    return {"ok": True, "monitor": serialize_monitor(monitor)}


@router.get("/{monitor_id}")
async def get_monitor(
    monitor_id: str,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    try:
        monitor = monitor_service.get_monitor(db, project, monitor_id)
    except NotFoundError:
        raise not_found_error("Monitor")
    return {"ok": True, "monitor": serialize_monitor(monitor)}


@router.patch("/{monitor_id}")
async def update_monitor(
    monitor_id: str,
    request: MonitorUpdate,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    """Update a monitor; pausing sets its status to paused."""
    try:
        monitor = monitor_service.update_monitor(db, project, monitor_id, request)
    except NotFoundError:
        raise not_found_error("Monitor")
    except (InvalidURL, DomainNotAllowed) as e:
        db.rollback()
        raise domain_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update monitor {monitor_id}: {e}", exc_info=True)
        raise handle_database_error(e, "update_monitor")
    return {"ok": True, "monitor": serialize_monitor(monitor)}


@router.delete("/{monitor_id}")
async def delete_monitor(
    monitor_id: str,
    db: Session = Depends(get_db),
    project: GuestProject = Depends(get_guest_project),
) -> Dict[str, Any]:
    try:
        monitor_service.delete_monitor(db, project, monitor_id)
    except NotFoundError:
        raise not_found_error("Monitor")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete monitor {monitor_id}: {e}", exc_info=True)
        raise handle_database_error(e, "delete_monitor")
    return {"ok": True}
