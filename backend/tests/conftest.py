"""Root conftest — shared settings, fake collaborators and an in-process client.

Invariants:
    - Environment defaults are set before any gateway module is imported
      (gateway.main builds its module-level app on import)
    - Every test gets a fresh GatewayContext and MetricsRegistry
    - The items route group records which handlers actually ran

Design Decisions:
    - httpx ASGITransport drives the full middleware stack without a socket;
      lifespan is exercised separately through app.router.lifespan_context
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from gateway.api.routes import status  # noqa: E402
from gateway.config import Settings  # noqa: E402
from gateway.context import build_context  # noqa: E402
from gateway.infrastructure.metrics import MetricsRegistry  # noqa: E402
from gateway.main import create_app  # noqa: E402
from tests.support import ALLOWED_ORIGIN, FakeDatabase, build_items_router  # noqa: E402


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        frontend_url=ALLOWED_ORIGIN,
        node_env="test",
        log_format="text",
    )


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def metrics():
    return MetricsRegistry(default_collectors=False)


@pytest.fixture
def context(settings, database, metrics):
    return build_context(settings, database=database, metrics=metrics)


@pytest.fixture
def handler_calls():
    return []


@pytest.fixture
def app(context, handler_calls):
    return create_app(
        context, route_groups=[build_items_router(handler_calls), status.router],
    )


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
