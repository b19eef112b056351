"""
Database Dependency

Yields an identity-bound database session for the request.

The session is:
- Bound to the caller's identity before the handler runs
- Committed on success, rolled back on exception
- Unbound and closed when the handler returns, on every exit path

The dependency is function-scoped, so the commit happens before the
response is sent. A failed commit reaches the error handlers and the
client gets an error instead of a success for a write that never landed.

Usage:
======
    from stratum.api.dependencies.database import DbSession

    @router.get("/clusters")
    async def list_clusters(db: DbSession, identity: CurrentIdentity):
        ...
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stratum.api.dependencies.auth import CurrentIdentity
from stratum.shared.db.session import get_session_factory, open_identity_session


async def get_db(
    identity: CurrentIdentity,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for identity-bound database sessions.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in open_identity_session(session_factory, identity):
        yield session


# Type alias for cleaner route signatures
DbSession = Annotated[AsyncSession, Depends(get_db, scope="function")]
