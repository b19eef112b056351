"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database behind a StaticPool, so all
sessions of one test share the same connection and see each other's commits.
"""

from typing import Any, AsyncGenerator, Awaitable, Callable, Optional, TypeVar

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stratum.api.main import create_application
from stratum.config.settings import settings
from stratum.shared.core.identity import IdentityContext
from stratum.shared.db.context import run_with_identity
from stratum.shared.db.session import create_session_factory, get_session_factory
from stratum.shared.models import Base
from stratum.shared.utils.security import SecurityUtils


T = TypeVar("T")


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def as_identity(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[str, Callable[[AsyncSession], Awaitable[T]]], Awaitable[T]]:
    """
    Run a coroutine function in its own identity-bound transaction.

        cluster = await as_identity("alice", lambda s: ClusterService(s).create_cluster(...))
    """

    async def _run(identity_id: str, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        return await run_with_identity(IdentityContext(identity_id=identity_id), fn, session_factory=session_factory)

    return _run


def identity(identity_id: str, **claims: Any) -> IdentityContext:
    return IdentityContext(identity_id=identity_id, claims={"sub": identity_id, **claims})


@pytest.fixture
def make_identity() -> Callable[..., IdentityContext]:
    return identity


# ═══════════════════════════════════════════════════════════════════════════════
# API
# ═══════════════════════════════════════════════════════════════════════════════


def make_token(identity_id: str, extra_claims: Optional[dict[str, Any]] = None, **kwargs: Any) -> str:
    return SecurityUtils.create_identity_token(
        identity_id,
        kwargs.pop("secret_key", settings.JWT_SECRET_KEY),
        algorithm=settings.JWT_ALGORITHM,
        identity_claim=settings.JWT_IDENTITY_CLAIM,
        audience=settings.JWT_AUDIENCE,
        extra_claims=extra_claims,
        **kwargs,
    )


@pytest.fixture
def auth() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for an identity."""

    def _headers(identity_id: str, **claims: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(identity_id, extra_claims=claims or None)}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    app = create_application()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mint_token() -> Callable[..., str]:
    return make_token
