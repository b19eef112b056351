"""Isolation: nothing outside the caller's clusters is ever returned."""

from sqlalchemy import select

from stratum.shared.models import Cluster, ClusterMembership, Domain, Resource
from stratum.shared.repositories import ClusterRepository, MembershipRepository
from stratum.shared.services import ClusterService, DomainService, ResourceService


async def _build_tree(as_identity, make_identity, owner: str, name: str):
    who = make_identity(owner)

    async def build(session):
        cluster = await ClusterService(session).create_cluster(who, {"name": name})
        domain = await DomainService(session).create_in_cluster(who, cluster.id, {"name": f"{name}-domain"})
        resource = await ResourceService(session).create_in_domain(who, domain.id, {"name": f"{name}-resource"})
        return cluster, domain, resource

    return await as_identity(owner, build)


async def test_each_identity_sees_only_its_own_tree(as_identity, make_identity):
    a_cluster, a_domain, a_resource = await _build_tree(as_identity, make_identity, "alice", "Alpha")
    b_cluster, _, _ = await _build_tree(as_identity, make_identity, "bob", "Beta")

    async def visible(session):
        clusters = (await session.execute(select(Cluster))).scalars().all()
        domains = (await session.execute(select(Domain))).scalars().all()
        resources = (await session.execute(select(Resource))).scalars().all()
        memberships = (await session.execute(select(ClusterMembership))).scalars().all()
        return clusters, domains, resources, memberships

    clusters, domains, resources, memberships = await as_identity("alice", visible)
    assert [c.id for c in clusters] == [a_cluster.id]
    assert [d.id for d in domains] == [a_domain.id]
    assert [r.id for r in resources] == [a_resource.id]
    assert {m.cluster_id for m in memberships} == {a_cluster.id}

    hidden = await as_identity("alice", lambda s: ClusterRepository(s).get(b_cluster.id))
    assert hidden is None


async def test_counts_respect_the_filter(as_identity, make_identity):
    await _build_tree(as_identity, make_identity, "alice", "Alpha")
    await _build_tree(as_identity, make_identity, "bob", "Beta")
    await _build_tree(as_identity, make_identity, "bob", "Gamma")

    _, alice_total = await as_identity("alice", lambda s: ClusterRepository(s).list())
    _, bob_total = await as_identity("bob", lambda s: ClusterRepository(s).list())
    assert (alice_total, bob_total) == (1, 2)


async def test_membership_opens_the_whole_tree(as_identity, make_identity):
    cluster, domain, resource = await _build_tree(as_identity, make_identity, "alice", "Alpha")

    async def add_bob(session):
        await MembershipRepository(session).create(cluster_id=cluster.id, identity_id="bob")

    await as_identity("alice", add_bob)

    async def visible_ids(session):
        return (
            [d.id for d in (await session.execute(select(Domain))).scalars().all()],
            [r.id for r in (await session.execute(select(Resource))).scalars().all()],
        )

    domain_ids, resource_ids = await as_identity("bob", visible_ids)
    assert domain_ids == [domain.id]
    assert resource_ids == [resource.id]
