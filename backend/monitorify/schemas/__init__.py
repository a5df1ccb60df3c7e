"""Pydantic schemas for request/response validation."""
from monitorify.schemas.guest import GenerateRequest, GenerateResponse, PingResponse
from monitorify.schemas.jobs import JobCreatedResponse, MetaScrapeRequest, PdfRequest, ScreenshotRequest
from monitorify.schemas.monitors import MonitorCreate, MonitorUpdate

__all__ = [
    "GenerateRequest",
    "GenerateResponse",
    "JobCreatedResponse",
    "MetaScrapeRequest",
    "MonitorCreate",
    "MonitorUpdate",
    "PdfRequest",
    "PingResponse",
    "ScreenshotRequest",
]
