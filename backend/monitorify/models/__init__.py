"""Models package."""
from monitorify.models.guest_project import GuestProject
from monitorify.models.job import Job
from monitorify.models.monitor import Monitor

__all__ = ["GuestProject", "Job", "Monitor"]
