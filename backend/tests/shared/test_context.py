import asyncio

import pytest
from sqlalchemy import select

from stratum.shared.core.exceptions import AuthenticationError
from stratum.shared.core.identity import IdentityContext
from stratum.shared.db.context import ContextState, SessionContext, bind_identity, run_with_identity
from stratum.shared.db.row_filter import IDENTITY_INFO_KEY, bound_identity
from stratum.shared.models import Cluster
from stratum.shared.services import ClusterService


async def test_bind_and_unbind_walk_the_states(session_factory):
    async with session_factory() as session:
        context = SessionContext(session)
        assert context.state is ContextState.UNBOUND

        await context.bind(IdentityContext(identity_id="alice"))
        assert context.state is ContextState.BOUND
        assert bound_identity(session.sync_session).identity_id == "alice"

        await context.unbind()
        assert context.state is ContextState.UNBOUND
        assert IDENTITY_INFO_KEY not in session.info


@pytest.mark.parametrize("bad", [None, "alice", {"identity_id": "alice"}])
async def test_bind_rejects_anything_but_an_identity(session_factory, bad):
    async with session_factory() as session:
        context = SessionContext(session)
        with pytest.raises(AuthenticationError):
            await context.bind(bad)
        assert context.state is ContextState.UNBOUND
        assert IDENTITY_INFO_KEY not in session.info


async def test_session_cannot_be_bound_twice(session_factory):
    async with session_factory() as session:
        async with bind_identity(session, IdentityContext(identity_id="alice")):
            with pytest.raises(RuntimeError):
                await SessionContext(session).bind(IdentityContext(identity_id="bob"))


async def test_binding_is_released_when_the_body_raises(session_factory):
    async with session_factory() as session:
        with pytest.raises(ZeroDivisionError):
            async with bind_identity(session, IdentityContext(identity_id="alice")) as context:
                1 / 0
        assert context.state is ContextState.UNBOUND
        assert bound_identity(session.sync_session) is None


async def test_binding_is_released_when_the_task_is_cancelled(session_factory, make_identity):
    alice = make_identity("alice")
    inside = asyncio.Event()
    seen = {}

    async def work():
        async with session_factory() as session:
            async with session.begin():
                async with bind_identity(session, alice) as context:
                    seen["session"], seen["context"] = session, context
                    await ClusterService(session).create_cluster(alice, {"name": "Cancelled"})
                    inside.set()
                    await asyncio.sleep(3600)

    task = asyncio.create_task(work())
    await inside.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert seen["context"].state is ContextState.UNBOUND
    assert bound_identity(seen["session"].sync_session) is None

    clusters, total = await run_with_identity(
        alice,
        lambda s: ClusterService(s).list_clusters(alice),
        session_factory=session_factory,
    )
    assert total == 0
    assert clusters == []


async def test_unbound_session_sees_no_rows(as_identity, session_factory, make_identity):
    await as_identity("alice", lambda s: ClusterService(s).create_cluster(make_identity("alice"), {"name": "Alpha"}))

    async with session_factory() as session:
        result = await session.execute(select(Cluster))
        assert result.scalars().all() == []


async def test_run_with_identity_commits_on_success(session_factory, make_identity):
    alice = make_identity("alice")
    created = await run_with_identity(
        alice,
        lambda s: ClusterService(s).create_cluster(alice, {"name": "Alpha"}),
        session_factory=session_factory,
    )
    fetched = await run_with_identity(
        alice,
        lambda s: ClusterService(s).get_cluster(alice, created.id),
        session_factory=session_factory,
    )
    assert fetched.name == "Alpha"


async def test_run_with_identity_rolls_back_on_error(session_factory, make_identity):
    alice = make_identity("alice")

    async def create_then_fail(session):
        await ClusterService(session).create_cluster(alice, {"name": "Doomed"})
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await run_with_identity(alice, create_then_fail, session_factory=session_factory)

    clusters, total = await run_with_identity(
        alice,
        lambda s: ClusterService(s).list_clusters(alice),
        session_factory=session_factory,
    )
    assert total == 0
