"""
Racing writers.

These run against a file-backed SQLite database with a regular pool, so each
transaction gets its own connection and SQLite serializes the writers.
"""

import asyncio
from typing import Any

import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from stratum.shared.core.exceptions import DuplicateResourceError
from stratum.shared.db.context import run_with_identity
from stratum.shared.db.session import create_session_factory
from stratum.shared.models import Base, ClusterMembership
from stratum.shared.services import ClusterService, DomainService, MembershipService, RelationshipService


@pytest_asyncio.fixture
async def file_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'stratum.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


async def test_concurrent_add_member_admits_exactly_one(file_factory, make_identity):
    alice = make_identity("alice")
    cluster = await run_with_identity(
        alice,
        lambda s: ClusterService(s).create_cluster(alice, {"name": "Alpha"}),
        session_factory=file_factory,
    )

    def add_bob():
        return run_with_identity(
            alice,
            lambda s: MembershipService(s).add_member(alice, cluster.id, "bob"),
            session_factory=file_factory,
        )

    results = await asyncio.gather(add_bob(), add_bob(), return_exceptions=True)

    outcomes = sorted(type(r).__name__ for r in results)
    assert outcomes == [ClusterMembership.__name__, DuplicateResourceError.__name__]

    members, total = await run_with_identity(
        alice,
        lambda s: MembershipService(s).list_members(alice, cluster.id),
        session_factory=file_factory,
    )
    assert total == 2
    assert sorted(m.identity_id for m in members) == ["alice", "bob"]


async def test_concurrent_link_domain_both_succeed(file_factory, make_identity):
    alice = make_identity("alice")

    async def build(session):
        alpha = await ClusterService(session).create_cluster(alice, {"name": "Alpha"})
        omega = await ClusterService(session).create_cluster(alice, {"name": "Omega"})
        domain = await DomainService(session).create_in_cluster(alice, omega.id, {"name": "D1"})
        return alpha, domain

    alpha, domain = await run_with_identity(alice, build, session_factory=file_factory)

    def link():
        return run_with_identity(
            alice,
            lambda s: RelationshipService(s).link_domain(alice, alpha.id, domain.id),
            session_factory=file_factory,
        )

    first, second = await asyncio.gather(link(), link())

    assert sorted([first.changed, second.changed]) == [False, True]

    domains, total = await run_with_identity(
        alice,
        lambda s: DomainService(s).list_for_cluster(alice, alpha.id),
        session_factory=file_factory,
    )
    assert total == 1
    assert domains[0].id == domain.id
