"""
Pytest configuration and fixtures for the live preview service tests.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from backend.config import settings
from backend.main import app


@pytest_asyncio.fixture
async def async_client():
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def client():
    """Synchronous TestClient for WS testing."""
    return TestClient(app)


@pytest.fixture
def fast_grace(monkeypatch):
    """Shrink the grace period so success arrives within the test."""
    monkeypatch.setattr(settings, "PREVIEW_GRACE_PERIOD_SECONDS", 0.01)


@pytest.fixture
def slow_grace(monkeypatch):
    """Keep the run in loading for the whole test."""
    monkeypatch.setattr(settings, "PREVIEW_GRACE_PERIOD_SECONDS", 30.0)
