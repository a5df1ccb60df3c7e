"""Serialization utilities for converting models to API responses."""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from monitorify.utils.time import ensure_utc


def serialize_uuid(value: Optional[UUID]) -> Optional[str]:
    """
    Serialize UUID to string.

    Args:
        value: UUID value or None

    Returns:
        String representation or None
    """
    return str(value) if value else None


def serialize_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize datetime to ISO format string (always UTC).

    Args:
        value: Datetime value or None

    Returns:
        ISO format string or None
    """
    return ensure_utc(value).isoformat() if value else None


def serialize_job(job) -> Dict[str, Any]:
    """Job document as returned to polling clients."""
    return {
        "id": serialize_uuid(job.id),
        "type": job.type,
        "status": job.status,
        "payload": job.payload,
        "result": {"fileUrl": job.result_file_url} if job.result_file_url else None,
        "error": {"message": job.error_message} if job.error_message else None,
        "createdAt": serialize_datetime(job.created_at),
        "startedAt": serialize_datetime(job.started_at),
        "finishedAt": serialize_datetime(job.finished_at),
    }


def serialize_monitor(monitor) -> Dict[str, Any]:
    """Monitor document with its last check result."""
    return {
        "id": serialize_uuid(monitor.id),
        "guestProjectId": serialize_uuid(monitor.guest_project_id),
        "name": monitor.name,
        "url": monitor.url,
        "method": monitor.method,
        "intervalSec": monitor.interval_sec,
        "timeoutMs": monitor.timeout_ms,
        "followRedirects": monitor.follow_redirects,
        "headers": monitor.headers,
        "isActive": monitor.is_active,
        "lastStatus": monitor.last_status,
        "lastCheckedAt": serialize_datetime(monitor.last_checked_at),
        "lastResponseTimeMs": monitor.last_response_time_ms,
        "lastHttpStatus": monitor.last_http_status,
        "lastError": monitor.last_error,
        "createdAt": serialize_datetime(monitor.created_at),
        "updatedAt": serialize_datetime(monitor.updated_at),
    }
