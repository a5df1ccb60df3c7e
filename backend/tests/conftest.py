"""
Test configuration and fixtures for the Monitorify API.

Environment variables are set before the package is imported so the
settings singleton, logger and engine pick up test values. Every test gets
a fresh in-memory SQLite database and a temporary output directory.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_KEY_SALT", "test-salt")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RUN_WORKERS_IN_API", "false")
os.environ.setdefault("OUTPUT_DIR", tempfile.mkdtemp(prefix="monitorify_uploads_"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from monitorify.database import Base, get_db
from monitorify.models import GuestProject
from monitorify.services.guest_projects import create_guest_project
from monitorify.services.renderer import PageSnapshot
from monitorify.services.storage import OutputStore

class FakeRenderer:
    """Renderer stand-in that records calls and returns fixed bytes."""

    def __init__(self, data: bytes = b"fake-bytes", error: Exception = None, delay: float = 0):
        self.data = data
        self.error = error
        self.delay = delay
        self.calls = []

    async def _render(self, kind: str, url: str, options) -> bytes:
        self.calls.append((kind, url, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.data

    async def screenshot(self, url, options) -> bytes:
        return await self._render("screenshot", url, options)

    async def pdf(self, url, options) -> bytes:
        return await self._render("pdf", url, options)

    async def inspect(self, url, timeout_ms) -> PageSnapshot:
        self.calls.append(("inspect", url, timeout_ms))
        if self.error is not None:
            raise self.error
        return PageSnapshot(
            fetched_url=url,
            status=200,
            headers={"x-powered-by": "Next.js"},
            html='<html><script id="__NEXT_DATA__"></script></html>',
            meta={"title": "Example", "description": "An example page"},
            timing={"ttfbMs": 41.7, "domContentLoadedMs": 310.2, "loadEventMs": 512.6},
            elapsed_ms=900,
        )


class FakeScorer:
    def __init__(self, score=0.91):
        self.value = score
        self.calls = []

    async def score(self, url):
        self.calls.append(url)
        return {"score": self.value, "lcpMs": 1200, "fcpMs": 800, "tbtMs": 30, "cls": 0.01, "ttiMs": 1500}


@pytest.fixture(scope="function")
def engine():
    """In-memory database shared across sessions of one test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(tmp_path) -> OutputStore:
    return OutputStore(root_dir=str(tmp_path / "uploads"), public_path="/uploads")


@pytest.fixture
def issued(db):
    """A live guest project for https://www.example.com and its raw key."""
    return create_guest_project(db, "https://www.example.com")


@pytest.fixture
def project(issued) -> GuestProject:
    return issued.project


@pytest.fixture
def expired_project(db) -> GuestProject:
    return create_guest_project(
        db,
        "https://expired.example.org",
        now=datetime.now(timezone.utc) - timedelta(days=2),
    ).project


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from monitorify.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app, session_factory) -> Generator[TestClient, None, None]:
    """
    Test client bound to the per-test database.
    """

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    test_app.dependency_overrides[get_db] = override_get_db
    with TestClient(test_app) as test_client:
        yield test_client
    test_app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(issued):
    return {"X-API-Key": issued.api_key}


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def scorer() -> FakeScorer:
    return FakeScorer()
