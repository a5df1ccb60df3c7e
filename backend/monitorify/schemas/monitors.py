"""Schemas for uptime monitors."""
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from monitorify.constants import (
    DEFAULT_INTERVAL_SEC,
    DEFAULT_TIMEOUT_MS,
    MAX_HEADER_KEY_LENGTH,
    MAX_HEADER_VALUE_LENGTH,
    MAX_INTERVAL_SEC,
    MAX_MONITOR_HEADERS,
    MAX_MONITOR_NAME_LENGTH,
    MAX_TIMEOUT_MS,
    MIN_INTERVAL_SEC,
    MIN_TIMEOUT_MS,
)


def _is_sendable(text: str) -> bool:
    """Header text goes on the wire as ASCII without line breaks."""
    return text.isascii() and "\r" not in text and "\n" not in text


def validate_monitor_headers(value: Optional[Mapping[str, Any]]) -> Optional[Dict[str, str]]:
    """
    Validate custom request headers for a monitor.

    Keys are trimmed; scalar values are stringified. Any violation rejects
    the whole mapping.

    Returns:
        A plain string map, or None when no headers are given

    Raises:
        ValueError: If the mapping breaks a size or type limit
    """
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError("headers must be an object of string values")
    if len(value) > MAX_MONITOR_HEADERS:
        raise ValueError(f"at most {MAX_MONITOR_HEADERS} headers are allowed")

    headers: Dict[str, str] = {}
    for raw_key, raw_value in value.items():
        key = str(raw_key or "").strip()
        if not key:
            raise ValueError("header names must not be empty")
        if len(key) > MAX_HEADER_KEY_LENGTH:
            raise ValueError(f"header name '{key[:20]}...' exceeds {MAX_HEADER_KEY_LENGTH} characters")
        if not _is_sendable(key):
            raise ValueError(f"header name '{key[:20]}' must be single-line ASCII")

        if isinstance(raw_value, bool):
            text = "true" if raw_value else "false"
        elif isinstance(raw_value, (str, int, float)):
            text = str(raw_value)
        else:
            raise ValueError(f"header '{key}' must have a string, number or boolean value")

        if len(text) > MAX_HEADER_VALUE_LENGTH:
            raise ValueError(f"header '{key}' value exceeds {MAX_HEADER_VALUE_LENGTH} characters")
        if not _is_sendable(text):
            raise ValueError(f"header '{key}' value must be single-line ASCII")
        headers[key] = text

    return headers or None


def normalize_method(value: Optional[str]) -> str:
    """HEAD stays HEAD; anything else checks with GET."""
    return "HEAD" if str(value or "").upper() == "HEAD" else "GET"


class MonitorCreate(BaseModel):
    """Request schema for POST /api/monitors."""
    url: str = Field(..., description="URL to check, must be on the project's domain")
    name: str = Field("", max_length=MAX_MONITOR_NAME_LENGTH)
    method: str = Field("GET", description="GET or HEAD")
    intervalSec: int = Field(DEFAULT_INTERVAL_SEC, ge=MIN_INTERVAL_SEC, le=MAX_INTERVAL_SEC)
    timeoutMs: int = Field(DEFAULT_TIMEOUT_MS, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS)
    followRedirects: bool = True
    headers: Optional[Dict[str, Any]] = None
    isActive: bool = True

    @field_validator("headers")
    @classmethod
    def check_headers(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        return validate_monitor_headers(v)

    @field_validator("method")
    @classmethod
    def check_method(cls, v: str) -> str:
        return normalize_method(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return (v or "").strip()


class MonitorUpdate(BaseModel):
    """Request schema for PATCH /api/monitors/{id}. Only sent fields change."""
    url: Optional[str] = None
    name: Optional[str] = Field(None, max_length=MAX_MONITOR_NAME_LENGTH)
    method: Optional[str] = None
    intervalSec: Optional[int] = Field(None, ge=MIN_INTERVAL_SEC, le=MAX_INTERVAL_SEC)
    timeoutMs: Optional[int] = Field(None, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS)
    followRedirects: Optional[bool] = None
    headers: Optional[Dict[str, Any]] = None
    isActive: Optional[bool] = None

    @field_validator("headers")
    @classmethod
    def check_headers(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        return validate_monitor_headers(v)

    @field_validator("method")
    @classmethod
    def check_method(cls, v: Optional[str]) -> Optional[str]:
        return normalize_method(v) if v else None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None
