"""Monitor model for periodic HTTP health checks."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Uuid, Index
from sqlalchemy.orm import relationship
import uuid
from monitorify.database import Base
from monitorify.constants import MonitorStatus, DEFAULT_INTERVAL_SEC, DEFAULT_TIMEOUT_MS
from monitorify.utils.time import utc_now


class Monitor(Base):
    """Uptime monitor owned by a guest project."""
    __tablename__ = "monitors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    guest_project_id = Column(
        Uuid,
        ForeignKey("guest_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(120), nullable=False, default="")
    url = Column(String, nullable=False)
    method = Column(String(4), nullable=False, default="GET")  # GET|HEAD
    interval_sec = Column(Integer, nullable=False, default=DEFAULT_INTERVAL_SEC)
    timeout_ms = Column(Integer, nullable=False, default=DEFAULT_TIMEOUT_MS)
    follow_redirects = Column(Boolean, nullable=False, default=True)
    headers = Column(JSON, nullable=True)  # Validated string map
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Written only by the monitor scheduler
    last_status = Column(String(10), nullable=False, default=MonitorStatus.UNKNOWN)  # unknown|up|down|paused
    last_checked_at = Column(DateTime(timezone=True), nullable=True)
    last_response_time_ms = Column(Integer, nullable=True)
    last_http_status = Column(Integer, nullable=True)
    last_error = Column(String, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    guest_project = relationship("GuestProject", back_populates="monitors")

    __table_args__ = (
        Index("idx_monitors_project_url", "guest_project_id", "url"),
    )
