"""
Session Context Propagator

Binds an IdentityContext to one database session for one logical request and
guarantees it is released on every exit path.

State Machine:
==============
    UNBOUND ──bind()──► BINDING ──ok──► BOUND ──unbind()──► UNBINDING ──► UNBOUND
                           │
                           └──invalid identity──► UNBOUND (AuthenticationError, no query ran)

Where the identity lives while BOUND:
=====================================
1. session.info[IDENTITY_INFO_KEY]
   Read by the ORM row filter on every SELECT.

2. PostgreSQL transaction-local setting (set_config(name, value, true))
   Read by the row-level security policies. Written whenever a transaction
   begins on the bound session (after_begin hook) and when binding inside an
   already-open transaction. Being transaction-local, it vanishes at COMMIT
   or ROLLBACK, and pooled connections are rolled back on return, so a reused
   connection never carries a previous request's identity.

Usage:
======
    async with bind_identity(session, identity):
        clusters = await ClusterRepository(session).list()

    result = await run_with_identity(identity, do_work)
"""

from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session, SessionTransaction

from stratum.config.settings import settings
from stratum.shared.core.exceptions import AuthenticationError
from stratum.shared.core.identity import IdentityContext, validate_identity_id
from stratum.shared.core.logging import get_logger, log_context, unbind_log_context
from stratum.shared.db.row_filter import IDENTITY_INFO_KEY, bound_identity


logger = get_logger("stratum.db.context")

T = TypeVar("T")

_SET_IDENTITY = text("SELECT set_config(:name, :value, true)")


class ContextState(str, Enum):
    """Lifecycle of an identity binding."""

    UNBOUND = "unbound"
    BINDING = "binding"
    BOUND = "bound"
    UNBINDING = "unbinding"


def _write_setting(connection: Connection, value: str) -> None:
    if connection.dialect.name == "postgresql":
        connection.execute(_SET_IDENTITY, {"name": settings.IDENTITY_SETTING_NAME, "value": value})


def _propagate_on_begin(
    session: Session,
    _transaction: SessionTransaction,
    connection: Connection,
) -> None:
    identity = bound_identity(session)
    if identity is not None:
        _write_setting(connection, identity.identity_id)


def install_identity_propagation(session_class: type[Session]) -> None:
    """Register the after_begin hook on a Session class (idempotent)."""
    if not event.contains(session_class, "after_begin", _propagate_on_begin):
        event.listen(session_class, "after_begin", _propagate_on_begin)


class SessionContext:
    """
    One identity binding on one AsyncSession.

    Attributes:
        session: The session being bound
        state: Current ContextState
        identity: The bound identity while BOUND
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.state = ContextState.UNBOUND
        self.identity: Optional[IdentityContext] = None

    async def bind(self, identity: Any) -> None:
        """
        Attach the identity to the session.

        Raises:
            AuthenticationError: If identity is not a usable IdentityContext
            RuntimeError: If this context or the session is already bound
        """
        if self.state is not ContextState.UNBOUND:
            raise RuntimeError(f"Cannot bind from state {self.state.value}")
        if bound_identity(self.session.sync_session) is not None:
            raise RuntimeError("Session already carries a bound identity")

        self.state = ContextState.BINDING
        try:
            if not isinstance(identity, IdentityContext):
                raise AuthenticationError("Identity is missing")
            validate_identity_id(identity.identity_id)

            self.session.info[IDENTITY_INFO_KEY] = identity
            if self.session.in_transaction():
                connection = await self.session.connection()
                await connection.run_sync(_write_setting, identity.identity_id)
        except BaseException:
            self.session.info.pop(IDENTITY_INFO_KEY, None)
            self.state = ContextState.UNBOUND
            raise

        self.identity = identity
        self.state = ContextState.BOUND
        log_context(identity_id=identity.identity_id)

    async def unbind(self, clear_setting: bool = True) -> None:
        """
        Detach the identity.

        Args:
            clear_setting: Also blank the PostgreSQL setting when a transaction
                is still open. Skipped on error paths, where the pending
                rollback discards it anyway.
        """
        if self.state is ContextState.UNBOUND:
            return

        self.state = ContextState.UNBINDING
        try:
            if clear_setting and self.session.in_transaction():
                connection = await self.session.connection()
                await connection.run_sync(_write_setting, "")
        finally:
            self.session.info.pop(IDENTITY_INFO_KEY, None)
            unbind_log_context("identity_id")
            self.identity = None
            self.state = ContextState.UNBOUND


@asynccontextmanager
async def bind_identity(session: AsyncSession, identity: IdentityContext) -> AsyncIterator[SessionContext]:
    """
    Scoped binding: bind before the body runs, unbind however it exits.

    Cancellation and exceptions take the error path, which unbinds without
    issuing SQL so a failed transaction can still be rolled back cleanly.
    """
    context = SessionContext(session)
    await context.bind(identity)
    try:
        yield context
    except BaseException:
        await context.unbind(clear_setting=False)
        raise
    else:
        await context.unbind()


async def run_with_identity(
    identity: IdentityContext,
    fn: Callable[[AsyncSession], Awaitable[T]],
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> T:
    """
    Run fn in its own session and transaction with the identity bound.

    The transaction commits when fn returns and rolls back when it raises.
    External calls should happen outside fn so no connection is held idle.
    """
    if session_factory is None:
        from stratum.shared.db.session import AsyncSessionLocal

        session_factory = AsyncSessionLocal

    async with session_factory() as session:
        async with session.begin():
            async with bind_identity(session, identity):
                return await fn(session)
