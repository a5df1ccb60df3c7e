"""Monitor management for guest projects."""
import threading
import uuid
from typing import List

from sqlalchemy.orm import Session

from monitorify.constants import MAX_MONITORS_PER_PROJECT, MonitorStatus
from monitorify.models import GuestProject, Monitor
from monitorify.schemas.monitors import MonitorCreate, MonitorUpdate
from monitorify.services.domain_guard import ensure_url_allowed
from monitorify.utils.exceptions import MonitorLimitReached, NotFoundError
from monitorify.utils.logger import logger
from monitorify.utils.url import extract_host, normalize_and_validate_url

# Serializes count-then-insert within this process; the row lock covers
# other processes on databases that support it.
_create_lock = threading.Lock()


def list_monitors(db: Session, project: GuestProject) -> List[Monitor]:
    return (
        db.query(Monitor)
        .filter(Monitor.guest_project_id == project.id)
        .order_by(Monitor.created_at.desc())
        .all()
    )


def get_monitor(db: Session, project: GuestProject, monitor_id: str | uuid.UUID) -> Monitor:
    """
    Load a monitor owned by the project.

    Raises:
        NotFoundError: If the ID is malformed, unknown, or owned by another project
    """
    try:
        if isinstance(monitor_id, str):
            monitor_id = uuid.UUID(monitor_id)
    except ValueError:
        raise NotFoundError("Monitor not found")

    monitor = db.query(Monitor).filter(
        Monitor.id == monitor_id,
        Monitor.guest_project_id == project.id,
    ).first()
    if not monitor:
        raise NotFoundError("Monitor not found")
    return monitor


def create_monitor(
    db: Session,
    project: GuestProject,
    data: MonitorCreate,
    limit: int = MAX_MONITORS_PER_PROJECT,
) -> Monitor:
    """
    Create a monitor on the project's domain.

    Raises:
        InvalidURL: If the URL is malformed
        DomainNotAllowed: If the URL is outside the project's domain
        MonitorLimitReached: If the project already has the maximum number of monitors
    """
    ensure_url_allowed(project.website_url, data.url)

    with _create_lock:
        # Lock the owning project row so concurrent creators count in turn
        db.query(GuestProject).filter(GuestProject.id == project.id).with_for_update().first()

        count = db.query(Monitor).filter(Monitor.guest_project_id == project.id).count()
        if count >= limit:
            db.rollback()
            raise MonitorLimitReached(limit)

        normalized = normalize_and_validate_url(data.url)
        monitor = Monitor(
            guest_project_id=project.id,
            name=data.name or extract_host(normalized),
            url=normalized,
            method=data.method,
            interval_sec=data.intervalSec,
            timeout_ms=data.timeoutMs,
            follow_redirects=data.followRedirects,
            headers=data.headers,
            is_active=data.isActive,
            last_status=MonitorStatus.UNKNOWN if data.isActive else MonitorStatus.PAUSED,
        )
        db.add(monitor)
        db.commit()

    db.refresh(monitor)
    logger.info(f"Created monitor {monitor.id} for project {project.id}: {monitor.url}")
    return monitor


def set_active(monitor: Monitor, is_active: bool) -> None:
    """Pause or resume a monitor, keeping last_status consistent."""
    monitor.is_active = is_active
    if not is_active:
        monitor.last_status = MonitorStatus.PAUSED
    elif monitor.last_status == MonitorStatus.PAUSED:
        # Old up/down results are stale after a pause
        monitor.last_status = MonitorStatus.UNKNOWN


def update_monitor(
    db: Session,
    project: GuestProject,
    monitor_id: str | uuid.UUID,
    data: MonitorUpdate,
) -> Monitor:
    """
    Apply a partial update; only fields present in the request change.

    Raises:
        NotFoundError: If the monitor does not belong to the project
        InvalidURL: If a new URL is malformed
        DomainNotAllowed: If a new URL is outside the project's domain
    """
    fields = data.model_fields_set
    if data.url:
        ensure_url_allowed(project.website_url, data.url)

    monitor = get_monitor(db, project, monitor_id)

    if data.url:
        monitor.url = normalize_and_validate_url(data.url)
    if "name" in fields:
        monitor.name = data.name or ""
    if data.method:
        monitor.method = data.method
    if data.intervalSec is not None:
        monitor.interval_sec = data.intervalSec
    if data.timeoutMs is not None:
        monitor.timeout_ms = data.timeoutMs
    if data.followRedirects is not None:
        monitor.follow_redirects = data.followRedirects
    if "headers" in fields:
        monitor.headers = data.headers
    if data.isActive is not None:
        set_active(monitor, data.isActive)

    db.commit()
    db.refresh(monitor)
    return monitor


def delete_monitor(db: Session, project: GuestProject, monitor_id: str | uuid.UUID) -> None:
    monitor = get_monitor(db, project, monitor_id)
    db.delete(monitor)
    db.commit()
    logger.info(f"Deleted monitor {monitor_id} for project {project.id}")
