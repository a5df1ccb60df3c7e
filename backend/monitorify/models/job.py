"""Job model for asynchronous rendering work."""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Uuid, Index
from sqlalchemy.orm import relationship
import uuid
from monitorify.database import Base
from monitorify.constants import JobStatus
from monitorify.utils.time import utc_now


class Job(Base):
    """Screenshot or PDF job owned by a guest project."""
    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(20), nullable=False)  # screenshot|url2pdf
    status = Column(String(20), nullable=False, default=JobStatus.QUEUED)  # queued|running|done|error
    guest_project_id = Column(
        Uuid,
        ForeignKey("guest_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payload = Column(JSON, nullable=False)  # url + rendering options
    result_file_url = Column(String(500), nullable=True)  # e.g. /uploads/shot_xxx.png
    error_message = Column(String, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    guest_project = relationship("GuestProject", back_populates="jobs")

    # Claim query: oldest queued job of a type
    __table_args__ = (
        Index("idx_jobs_type_status_created", "type", "status", "created_at"),
    )

    @property
    def target_url(self) -> str:
        return (self.payload or {}).get("url", "")
