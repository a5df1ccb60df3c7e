"""Guest key issuing and resolution."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from monitorify.config import settings
from monitorify.constants import GUEST_KEY_PREFIX
from monitorify.models import GuestProject
from monitorify.utils.exceptions import AuthenticationError, ProjectExpired, ProjectNotFound
from monitorify.utils.hashing import generate_guest_key, hash_api_key
from monitorify.utils.logger import logger
from monitorify.utils.time import ensure_utc, utc_now
from monitorify.utils.url import normalize_and_validate_url


@dataclass
class IssuedGuestKey:
    """A newly created project and its raw key (never stored)."""
    project: GuestProject
    api_key: str


def is_expired(project: GuestProject, now: Optional[datetime] = None) -> bool:
    now = now or utc_now()
    return ensure_utc(project.expires_at) <= now


def create_guest_project(
    db: Session,
    website_url: str,
    now: Optional[datetime] = None,
    ttl: Optional[timedelta] = None,
) -> IssuedGuestKey:
    """
    Issue a guest key scoped to a website.

    Args:
        db: Database session
        website_url: Raw URL from the caller
        now: Creation time (defaults to current UTC time)
        ttl: Key lifetime (defaults to the configured guest TTL)

    Returns:
        The persisted project and the raw key

    Raises:
        InvalidURL: If the website URL is not an acceptable http(s) URL
    """
    normalized = normalize_and_validate_url(website_url, allow_local=False)
    now = now or utc_now()
    ttl = ttl or timedelta(hours=settings.guest_key_ttl_hours)

    api_key = generate_guest_key()
    project = GuestProject(
        website_url=normalized,
        api_key_hash=hash_api_key(api_key),
        expires_at=now + ttl,
        created_at=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info(f"Issued guest key for project {project.id} ({normalized}), expires {project.expires_at}")
    return IssuedGuestKey(project=project, api_key=api_key)


def resolve_guest_project(db: Session, api_key: Optional[str], now: Optional[datetime] = None) -> GuestProject:
    """
    Find the active project for a raw guest key.

    Raises:
        AuthenticationError: If the key is missing or not a guest key
        ProjectNotFound: If no project matches the key
        ProjectExpired: If the project has expired
    """
    if not api_key or not api_key.startswith(GUEST_KEY_PREFIX):
        raise AuthenticationError("Invalid or expired API key")

    project = db.query(GuestProject).filter(
        GuestProject.api_key_hash == hash_api_key(api_key),
    ).first()
    if not project:
        raise ProjectNotFound()

    if is_expired(project, now):
        raise ProjectExpired()

    return project
