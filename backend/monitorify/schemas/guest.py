"""Schemas for guest key generation."""
from pydantic import BaseModel, Field
from typing import List


class GenerateRequest(BaseModel):
    """Request schema for /public/generate endpoint."""
    url: str = Field(..., description="Website the guest key is scoped to")


class EndpointInfo(BaseModel):
    name: str
    path: str
    method: str


class GenerateResponse(BaseModel):
    """Response schema for /public/generate endpoint."""
    projectId: str
    apiKey: str  # Only returned once
    websiteUrl: str
    allowedDomain: str
    expiresAt: str
    endpoints: List[EndpointInfo]


class PingResponse(BaseModel):
    """Response schema for /api/ping endpoint."""
    ok: bool = True
    projectId: str
    websiteUrl: str
    allowedDomain: str
    expiresAt: str
