"""Pytest configuration and fixtures for rental-access.

HTTP tests run a fresh app per test on the in-memory backend (no Firestore,
no Redis); the lifespan is entered explicitly because httpx's ASGITransport
does not send lifespan events. All imports use app.*.
"""

import os

os.environ["DATABASE_BACKEND"] = "memory"
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing-only"
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "true"

import pytest
import redis.asyncio as redis
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.application.services import AuthorizationService
from app.core.config import get_settings
from app.core.limiter import limiter
from app.infrastructure.cache import MemoryCacheService
from app.infrastructure.memory import (
    InMemoryPermissionRepository,
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
)
from app.infrastructure.security.jwt import create_access_token
from app.infrastructure.services import TenantInitializationService

get_settings.cache_clear()

TEST_TENANT_ID = "tenant-test"
ADMIN_USER_ID = "admin-user"


def make_headers(
    user_id: str,
    tenant_id: str = TEST_TENANT_ID,
    role_id: str | None = None,
) -> dict[str, str]:
    """Authorization and X-Tenant-ID headers for user_id."""
    token = create_access_token(user_id, tenant_id, role_id=role_id)
    return {"Authorization": f"Bearer {token}", "X-Tenant-ID": tenant_id}


@pytest.fixture
async def app() -> FastAPI:
    """Fresh app with its lifespan running (memory repositories, memory counters)."""
    from app.main import create_app

    get_settings.cache_clear()
    limiter.reset()
    application = create_app()
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seeded_roles(app: FastAPI) -> dict[str, str]:
    """Seed default RBAC for TEST_TENANT_ID; returns role code -> role id."""
    svc = TenantInitializationService(
        app.state.role_repo, app.state.permission_repo, app.state.assignment_repo
    )
    role_map = await svc.initialize_tenant_rbac(TEST_TENANT_ID)
    await svc.assign_admin_role(TEST_TENANT_ID, ADMIN_USER_ID)
    return role_map


@pytest.fixture
async def admin_headers(seeded_roles: dict[str, str]) -> dict[str, str]:
    """Headers for a user holding the seeded admin role."""
    return make_headers(ADMIN_USER_ID)


@pytest.fixture
async def redis_client() -> redis.Redis:
    """Client for a real Redis on REDIS_HOST/REDIS_PORT (db 15, flushed after the test).

    Skips (pytest.skip) when Redis is not reachable. Use
    @pytest.mark.requires_redis on tests that need this fixture; run without
    Redis via: pytest -m 'not requires_redis'.
    """
    settings = get_settings()
    client = redis.Redis(host=settings.redis_host, port=settings.redis_port, db=15)
    try:
        await client.ping()
    except (redis.ConnectionError, redis.TimeoutError, OSError):
        await client.aclose()
        pytest.skip(f"Redis not reachable at {settings.redis_host}:{settings.redis_port}")
    yield client
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def role_repo() -> InMemoryRoleRepository:
    return InMemoryRoleRepository()


@pytest.fixture
def permission_repo() -> InMemoryPermissionRepository:
    return InMemoryPermissionRepository()


@pytest.fixture
def assignment_repo() -> InMemoryRoleAssignmentRepository:
    return InMemoryRoleAssignmentRepository()


@pytest.fixture
def cache() -> MemoryCacheService:
    return MemoryCacheService(max_entries=100)


@pytest.fixture
def authz(
    role_repo: InMemoryRoleRepository,
    permission_repo: InMemoryPermissionRepository,
    assignment_repo: InMemoryRoleAssignmentRepository,
    cache: MemoryCacheService,
) -> AuthorizationService:
    """AuthorizationService over empty in-memory repositories with an in-process cache."""
    return AuthorizationService(
        role_repo=role_repo,
        permission_repo=permission_repo,
        assignment_repo=assignment_repo,
        cache=cache,
        cache_ttl=300,
    )
