"""Schemas for rendering jobs."""
from pydantic import BaseModel, Field
from typing import Dict, Optional

from monitorify.constants import (
    DEFAULT_PDF_FORMAT,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)


class ScreenshotRequest(BaseModel):
    """Request schema for /api/screenshot endpoint."""
    url: Optional[str] = Field(None, description="Page URL (defaults to the project website)")
    fullPage: bool = True
    width: int = Field(DEFAULT_VIEWPORT_WIDTH, ge=100, le=5000)
    height: int = Field(DEFAULT_VIEWPORT_HEIGHT, ge=100, le=5000)


class PdfMargin(BaseModel):
    """PDF page margins as CSS lengths."""
    top: str = "12mm"
    right: str = "12mm"
    bottom: str = "12mm"
    left: str = "12mm"


class PdfRequest(BaseModel):
    """Request schema for /api/url2pdf endpoint."""
    url: Optional[str] = Field(None, description="Page URL (defaults to the project website)")
    format: str = DEFAULT_PDF_FORMAT
    landscape: bool = False
    printBackground: bool = True
    width: int = Field(DEFAULT_VIEWPORT_WIDTH, ge=100, le=5000)
    height: int = Field(DEFAULT_VIEWPORT_HEIGHT, ge=100, le=5000)
    margin: PdfMargin = Field(default_factory=PdfMargin)


class JobCreatedResponse(BaseModel):
    """Response schema for job submission."""
    ok: bool = True
    jobId: str


class MetaScrapeRequest(BaseModel):
    """Request schema for /api/meta-scrape endpoint."""
    url: Optional[str] = Field(None, description="Page URL (defaults to the project website)")


def payload_from_request(request: BaseModel) -> Dict:
    """Job payload stored on the record (camelCase, as submitted)."""
    return request.model_dump()
