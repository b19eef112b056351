"""
Database Module

Database connectivity, session management and row visibility.

Architecture Overview:
======================
    FastAPI Route
        │
        │  Dependency Injection: get_db()
        ▼
    AsyncSession (StratumSession underneath)
        │   ├── bind_identity()    ← context.py: identity on session + PG setting
        │   └── do_orm_execute     ← row_filter.py: visibility criteria on every SELECT
        ▼
    Repository → PostgreSQL (row-level security from policies.py)

Usage:
======
    from stratum.shared.db import AsyncSessionLocal, bind_identity

    async with AsyncSessionLocal() as session:
        async with bind_identity(session, identity):
            ...
"""

from stratum.shared.db.session import (
    StratumSession,
    engine,
    AsyncSessionLocal,
    create_session_factory,
    get_session_factory,
    open_identity_session,
    ping_db,
    init_db,
    close_db,
)
from stratum.shared.db.context import (
    ContextState,
    SessionContext,
    bind_identity,
    run_with_identity,
)

__all__ = [
    "StratumSession",
    "engine",
    "AsyncSessionLocal",
    "create_session_factory",
    "get_session_factory",
    "open_identity_session",
    "ping_db",
    "init_db",
    "close_db",
    "ContextState",
    "SessionContext",
    "bind_identity",
    "run_with_identity",
]
