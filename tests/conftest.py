"""
Test fixtures for AgentLedger.

Provides:
- Settings tuned for tests (in-memory storage, no LLM, fast bcrypt, no delays)
- In-memory and SQLite-backed repositories
- A ServiceRegistry and an httpx client against create_app()
- A registered user with a session token
"""

import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from agentledger.auth.jwt import create_access_token
from agentledger.auth.router import hash_password
from agentledger.config import Settings
from agentledger.db.engine import create_session_factory, init_db
from agentledger.db.repositories import InMemoryRepository, SqlRepository
from agentledger.main import create_app
from agentledger.schemas.common import UserRole
from agentledger.schemas.records import UserRecord
from agentledger.services.registry import ServiceRegistry

# In-memory SQLite for fast, isolated tests
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"


async def _no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        storage_backend="memory",
        llm_provider="none",
        redis_url="",
        jwt_secret="test-jwt-secret",
        bcrypt_rounds=4,
        test_alert_delay_seconds=0,
        alert_log_fallback=True,
        log_format="console",
        log_level="WARNING",
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest_asyncio.fixture
async def sql_repository() -> AsyncGenerator[SqlRepository, None]:
    """SqlRepository over a fresh in-memory SQLite database."""
    engine = create_async_engine(TEST_DB_URL, echo=False)
    await init_db(engine)
    repo = SqlRepository(create_session_factory(engine), engine=engine)
    yield repo
    await repo.close()


@pytest_asyncio.fixture
async def registry(settings, repository) -> ServiceRegistry:
    return await ServiceRegistry.create(
        settings,
        repository=repository,
        llm_provider=None,
        rng=random.Random(42),
        sleep=_no_sleep,
    )


@pytest_asyncio.fixture
async def client(settings, registry) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client."""
    app = create_app(settings, registry=registry)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def user(repository) -> UserRecord:
    return await repository.create_user(
        name="Casey Analyst",
        email="casey@example.com",
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
        role=UserRole.COMPLIANCE,
    )


@pytest.fixture
def token(settings, user) -> str:
    return create_access_token(settings, user_id=user.id, email=user.email, role=str(user.role))


@pytest_asyncio.fixture
async def auth_client(settings, registry, token) -> AsyncGenerator[AsyncClient, None]:
    """Client carrying a Bearer session token."""
    app = create_app(settings, registry=registry)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as c:
        yield c
