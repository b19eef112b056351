import pytest
from sqlalchemy.exc import IntegrityError

from stratum.shared.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ClusterNotFoundError,
    DomainNotFoundError,
    HasChildrenError,
    ValidationError,
)
from stratum.shared.core.permissions import Role
from stratum.shared.repositories import ClusterRepository, ListFilter, MembershipRepository
from stratum.shared.services import ClusterService, DomainService, MembershipService, ResourceService


@pytest.fixture
def alice(make_identity):
    return make_identity("alice")


@pytest.fixture
def bob(make_identity):
    return make_identity("bob")


async def _create_cluster(as_identity, who, name="Alpha"):
    return await as_identity(who.identity_id, lambda s: ClusterService(s).create_cluster(who, {"name": name}))


async def _add_member(as_identity, owner, cluster_id, identity_id, role=Role.MEMBER):
    return await as_identity(
        owner.identity_id,
        lambda s: MembershipService(s).add_member(owner, cluster_id, identity_id, role=role),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CLUSTERS
# ═══════════════════════════════════════════════════════════════════════════════


async def test_creator_becomes_sole_owner(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice)

    role = await as_identity("alice", lambda s: MembershipRepository(s).role_of(cluster.id, "alice"))
    owners = await as_identity("alice", lambda s: MembershipRepository(s).count_owners(cluster.id))
    assert cluster.created_by == "alice"
    assert role is Role.OWNER
    assert owners == 1


async def test_name_is_trimmed_and_required(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice, name="  Alpha  ")
    assert cluster.name == "Alpha"

    with pytest.raises(ValidationError) as exc_info:
        await _create_cluster(as_identity, alice, name="   ")
    assert exc_info.value.field_errors == {"name": ["can't be blank"]}


async def test_name_length_is_limited(as_identity, alice):
    with pytest.raises(ValidationError) as exc_info:
        await _create_cluster(as_identity, alice, name="x" * 256)
    assert exc_info.value.field_errors["name"] == ["is too long (maximum is 255 characters)"]


async def test_names_are_unique_per_creator_among_live_clusters(as_identity, alice, bob):
    first = await _create_cluster(as_identity, alice)
    with pytest.raises(ValidationError):
        await _create_cluster(as_identity, alice)

    # Another creator may reuse it
    await _create_cluster(as_identity, bob)

    # Soft deleting frees the name
    await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, first.id))
    again = await _create_cluster(as_identity, alice)
    assert again.id != first.id


async def test_name_index_backs_up_the_name_check(as_identity, alice, monkeypatch):
    await _create_cluster(as_identity, alice)

    async def nothing_found(self, created_by, name, exclude_id=None):
        return None

    monkeypatch.setattr(ClusterRepository, "find_live_by_name", nothing_found)
    with pytest.raises(ValidationError) as exc_info:
        await _create_cluster(as_identity, alice)

    assert exc_info.value.field_errors == {"name": ["has already been taken"]}
    assert isinstance(exc_info.value.__cause__, IntegrityError)


async def test_non_member_gets_not_found(as_identity, alice, bob):
    cluster = await _create_cluster(as_identity, alice)
    with pytest.raises(ClusterNotFoundError):
        await as_identity("bob", lambda s: ClusterService(s).get_cluster(bob, cluster.id))


async def test_member_can_view_but_not_edit_or_delete(as_identity, alice, bob):
    cluster = await _create_cluster(as_identity, alice)
    await _add_member(as_identity, alice, cluster.id, "bob")

    seen = await as_identity("bob", lambda s: ClusterService(s).get_cluster(bob, cluster.id))
    assert seen.id == cluster.id

    with pytest.raises(AuthorizationError):
        await as_identity("bob", lambda s: ClusterService(s).update_cluster(bob, cluster.id, {"name": "Mine"}))
    with pytest.raises(AuthorizationError):
        await as_identity("bob", lambda s: ClusterService(s).delete_cluster(bob, cluster.id))


async def test_admin_can_edit_but_not_delete(as_identity, alice, bob):
    cluster = await _create_cluster(as_identity, alice)
    await _add_member(as_identity, alice, cluster.id, "bob", role=Role.ADMIN)

    updated = await as_identity(
        "bob",
        lambda s: ClusterService(s).update_cluster(bob, cluster.id, {"description": "shared"}),
    )
    assert updated.description == "shared"
    assert updated.name == "Alpha"

    with pytest.raises(AuthorizationError):
        await as_identity("bob", lambda s: ClusterService(s).delete_cluster(bob, cluster.id))


async def test_update_can_clear_description(as_identity, alice):
    cluster = await as_identity(
        "alice", lambda s: ClusterService(s).create_cluster(alice, {"name": "Alpha", "description": "x"})
    )
    updated = await as_identity(
        "alice", lambda s: ClusterService(s).update_cluster(alice, cluster.id, {"description": None})
    )
    assert updated.description is None


async def test_list_paginates_searches_and_sorts(as_identity, alice):
    for name in ("Charlie", "alpha", "Bravo", "Alpine"):
        await _create_cluster(as_identity, alice, name=name)

    page, total = await as_identity(
        "alice",
        lambda s: ClusterService(s).list_clusters(alice, ListFilter(limit=2, sort_by="name", sort_order="asc")),
    )
    assert total == 4
    assert len(page) == 2

    found, found_total = await as_identity(
        "alice", lambda s: ClusterService(s).list_clusters(alice, ListFilter(search="ALP"))
    )
    assert found_total == 2
    assert {c.name for c in found} == {"alpha", "Alpine"}


async def test_search_treats_wildcards_literally(as_identity, alice):
    await _create_cluster(as_identity, alice, name="100% done")
    await _create_cluster(as_identity, alice, name="1000 things")

    found, total = await as_identity(
        "alice", lambda s: ClusterService(s).list_clusters(alice, ListFilter(search="0%"))
    )
    assert total == 1
    assert found[0].name == "100% done"


async def test_unknown_sort_field_is_rejected(as_identity, alice):
    with pytest.raises(BadRequestError):
        await as_identity(
            "alice", lambda s: ClusterService(s).list_clusters(alice, ListFilter(sort_by="created_by"))
        )


# ═══════════════════════════════════════════════════════════════════════════════
# DELETION
# ═══════════════════════════════════════════════════════════════════════════════


async def test_delete_refuses_while_live_children_exist(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice)
    domain = await as_identity(
        "alice", lambda s: DomainService(s).create_in_cluster(alice, cluster.id, {"name": "D1"})
    )

    with pytest.raises(HasChildrenError):
        await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id))
    with pytest.raises(HasChildrenError):
        await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id, hard=True))

    await as_identity("alice", lambda s: DomainService(s).delete_domain(alice, domain.id))
    await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id))

    with pytest.raises(ClusterNotFoundError):
        await as_identity("alice", lambda s: ClusterService(s).get_cluster(alice, cluster.id))
    deleted = await as_identity(
        "alice", lambda s: ClusterService(s).get_cluster(alice, cluster.id, include_deleted=True)
    )
    assert deleted.is_deleted


async def test_hard_delete_removes_row_and_memberships(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice)
    await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id, hard=True))

    row = await as_identity("alice", lambda s: ClusterRepository(s).get(cluster.id, include_deleted=True))
    role = await as_identity("alice", lambda s: MembershipRepository(s).role_of(cluster.id, "alice"))
    assert row is None
    assert role is None


async def test_soft_deleted_cluster_can_then_be_hard_deleted(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice)
    await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id))
    await as_identity("alice", lambda s: ClusterService(s).delete_cluster(alice, cluster.id, hard=True))

    row = await as_identity("alice", lambda s: ClusterRepository(s).get(cluster.id, include_deleted=True))
    assert row is None


# ═══════════════════════════════════════════════════════════════════════════════
# DOMAINS & RESOURCES
# ═══════════════════════════════════════════════════════════════════════════════


async def test_domain_and_resource_follow_cluster_roles(as_identity, alice, bob):
    cluster = await _create_cluster(as_identity, alice)
    domain = await as_identity(
        "alice", lambda s: DomainService(s).create_in_cluster(alice, cluster.id, {"name": "D1"})
    )
    resource = await as_identity(
        "alice",
        lambda s: ResourceService(s).create_in_domain(
            alice, domain.id, {"name": "db", "resource_type": "postgres", "configuration": {"port": 5432}}
        ),
    )
    assert resource.configuration == {"port": 5432}

    with pytest.raises(DomainNotFoundError):
        await as_identity("bob", lambda s: DomainService(s).get_domain(bob, domain.id))

    await _add_member(as_identity, alice, cluster.id, "bob")
    fetched = await as_identity("bob", lambda s: ResourceService(s).get_resource(bob, resource.id))
    assert fetched.resource_type == "postgres"

    with pytest.raises(AuthorizationError):
        await as_identity(
            "bob", lambda s: ResourceService(s).update_resource(bob, resource.id, {"name": "renamed"})
        )
    with pytest.raises(AuthorizationError):
        await as_identity("bob", lambda s: DomainService(s).create_in_cluster(bob, cluster.id, {"name": "D2"}))


async def test_resource_configuration_must_be_an_object(as_identity, alice):
    cluster = await _create_cluster(as_identity, alice)
    domain = await as_identity(
        "alice", lambda s: DomainService(s).create_in_cluster(alice, cluster.id, {"name": "D1"})
    )
    with pytest.raises(ValidationError) as exc_info:
        await as_identity(
            "alice",
            lambda s: ResourceService(s).create_in_domain(alice, domain.id, {"name": "db", "configuration": [1]}),
        )
    assert exc_info.value.field_errors == {"configuration": ["must be an object"]}


async def test_domain_list_is_scoped_to_the_cluster(as_identity, alice):
    first = await _create_cluster(as_identity, alice, name="First")
    second = await _create_cluster(as_identity, alice, name="Second")
    await as_identity("alice", lambda s: DomainService(s).create_in_cluster(alice, first.id, {"name": "D1"}))
    await as_identity("alice", lambda s: DomainService(s).create_in_cluster(alice, second.id, {"name": "D2"}))

    domains, total = await as_identity("alice", lambda s: DomainService(s).list_for_cluster(alice, first.id))
    assert total == 1
    assert domains[0].name == "D1"
