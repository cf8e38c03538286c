"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET; set it before anything imports config.settings
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

from collections.abc import AsyncIterator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.pm_common.database import get_db_session  # noqa: E402
from src.pm_gateway.auth.jwt_handler import create_access_token  # noqa: E402


@pytest.fixture
def db_session() -> AsyncMock:
    """Stand-in AsyncSession handed to routers via dependency override."""
    return AsyncMock()


@pytest.fixture
async def client(db_session: AsyncMock) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints (no lifespan, no real DB)."""

    async def _override_db() -> AsyncIterator[AsyncMock]:
        yield db_session

    app.dependency_overrides[get_db_session] = _override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def bearer(user_id: str = "user-1", capabilities: list[str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, capabilities)}"}


@pytest.fixture
def token_headers():
    """Factory: token_headers(user_id, capabilities) -> Authorization header."""
    return bearer


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return bearer("user-1")


@pytest.fixture
def settler_headers() -> dict[str, str]:
    return bearer("ops-1", ["predictions:settle"])


@pytest.fixture
def confirmer_headers() -> dict[str, str]:
    return bearer("payments-1", ["stakes:confirm"])
