"""Guest project model: one time-boxed key bound to one website."""
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid
from monitorify.database import Base
from monitorify.utils.time import utc_now


class GuestProject(Base):
    """Guest project model scoping an API key to a website domain."""
    __tablename__ = "guest_projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    website_url = Column(String, nullable=False)  # Canonical URL, the domain anchor
    api_key_hash = Column(String, nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="guest_project", cascade="all, delete-orphan", passive_deletes=True)
    monitors = relationship("Monitor", back_populates="guest_project", cascade="all, delete-orphan", passive_deletes=True)
