"""Pytest configuration and fixtures."""

import pytest
from httpx import AsyncClient, ASGITransport

from portfolio_accounting.main import app
from tests.factories import acquire, dispose, hours


@pytest.fixture
def fifo_events():
    """Two lots then a disposal spanning both."""
    return [
        acquire(10, 1.0, hours(0)),
        acquire(10, 2.0, hours(1)),
        dispose(15, 3.0, hours(2)),
    ]


@pytest.fixture(scope="function")
async def client():
    """Create test client for the application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
