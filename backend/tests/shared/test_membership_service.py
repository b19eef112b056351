import pytest
from sqlalchemy.exc import IntegrityError

from stratum.shared.core.exceptions import (
    AuthorizationError,
    ClusterNotFoundError,
    DuplicateResourceError,
    LastOwnerError,
    MembershipNotFoundError,
    ValidationError,
)
from stratum.shared.core.permissions import Role
from stratum.shared.repositories import ListFilter, MembershipRepository
from stratum.shared.services import ClusterService, MembershipService


@pytest.fixture
async def cluster(as_identity, make_identity):
    alice = make_identity("alice")
    return await as_identity("alice", lambda s: ClusterService(s).create_cluster(alice, {"name": "Alpha"}))


def _members(as_identity, make_identity):
    """Call a MembershipService method as someone: await call("alice", "add_member", ...)."""

    async def call(who: str, method: str, *args, **kwargs):
        caller = make_identity(who)
        return await as_identity(who, lambda s: getattr(MembershipService(s), method)(caller, *args, **kwargs))

    return call


@pytest.fixture
def members(as_identity, make_identity):
    return _members(as_identity, make_identity)


async def test_owner_adds_and_lists_members(members, cluster):
    added = await members("alice", "add_member", cluster.id, "bob", role=Role.ADMIN, comment="ops on-call")
    assert added.role is Role.ADMIN
    assert added.comment == "ops on-call"

    listed, total = await members("alice", "list_members", cluster.id)
    assert total == 2
    assert [m.identity_id for m in listed] == ["alice", "bob"]


async def test_member_list_search_and_sort(members, cluster):
    await members("alice", "add_member", cluster.id, "bob", comment="database team")
    await members("alice", "add_member", cluster.id, "carol")

    found, total = await members("alice", "list_members", cluster.id, ListFilter(search="database"))
    assert total == 1
    assert found[0].identity_id == "bob"

    ordered, _ = await members(
        "alice", "list_members", cluster.id, ListFilter(sort_by="identity_id", sort_order="desc")
    )
    assert [m.identity_id for m in ordered] == ["carol", "bob", "alice"]


async def test_adding_an_existing_member_conflicts(members, cluster):
    await members("alice", "add_member", cluster.id, "bob")
    with pytest.raises(DuplicateResourceError):
        await members("alice", "add_member", cluster.id, "bob", role=Role.ADMIN)


async def test_unique_constraint_catches_a_missed_duplicate(members, cluster, monkeypatch):
    await members("alice", "add_member", cluster.id, "bob")

    async def nothing_found(self, cluster_id, identity_id):
        return None

    monkeypatch.setattr(MembershipRepository, "get_membership", nothing_found)
    with pytest.raises(DuplicateResourceError) as exc_info:
        await members("alice", "add_member", cluster.id, "bob")
    assert isinstance(exc_info.value.__cause__, IntegrityError)


async def test_malformed_identity_id_is_a_validation_error(members, cluster):
    with pytest.raises(ValidationError) as exc_info:
        await members("alice", "add_member", cluster.id, "   ")
    assert exc_info.value.field_errors == {"identity_id": ["is invalid"]}


async def test_member_cannot_manage_members(members, cluster):
    await members("alice", "add_member", cluster.id, "bob")
    with pytest.raises(AuthorizationError):
        await members("bob", "add_member", cluster.id, "carol")
    with pytest.raises(AuthorizationError):
        await members("bob", "update_role", cluster.id, "bob", Role.ADMIN)


async def test_outsider_gets_not_found(members, cluster):
    with pytest.raises(ClusterNotFoundError):
        await members("mallory", "add_member", cluster.id, "mallory", role=Role.OWNER)


async def test_admin_cannot_create_or_touch_owners(members, cluster):
    await members("alice", "add_member", cluster.id, "bob", role=Role.ADMIN)

    # Admins manage ordinary members
    await members("bob", "add_member", cluster.id, "carol")
    await members("bob", "update_role", cluster.id, "carol", Role.ADMIN)

    with pytest.raises(AuthorizationError):
        await members("bob", "add_member", cluster.id, "dave", role=Role.OWNER)
    with pytest.raises(AuthorizationError):
        await members("bob", "update_role", cluster.id, "bob", Role.OWNER)
    with pytest.raises(AuthorizationError):
        await members("bob", "update_role", cluster.id, "alice", Role.MEMBER)
    with pytest.raises(AuthorizationError):
        await members("bob", "remove_member", cluster.id, "alice")


async def test_last_owner_cannot_be_demoted_or_removed(members, cluster):
    with pytest.raises(LastOwnerError):
        await members("alice", "update_role", cluster.id, "alice", Role.ADMIN)
    with pytest.raises(LastOwnerError):
        await members("alice", "remove_member", cluster.id, "alice")

    role = await members("alice", "role_of", cluster.id, "alice")
    assert role is Role.OWNER


async def test_owner_can_step_down_once_another_owner_exists(members, cluster, as_identity):
    await members("alice", "add_member", cluster.id, "bob", role=Role.OWNER)
    await members("alice", "update_role", cluster.id, "alice", Role.MEMBER)

    owners = await as_identity("bob", lambda s: MembershipRepository(s).count_owners(cluster.id))
    assert owners == 1
    with pytest.raises(LastOwnerError):
        await members("bob", "remove_member", cluster.id, "bob")


async def test_update_comment_only(members, cluster):
    await members("alice", "add_member", cluster.id, "bob", comment="temp")
    updated = await members("alice", "update_member", cluster.id, "bob", comment=None)
    assert updated.comment is None
    assert updated.role is Role.MEMBER


async def test_removing_unknown_member(members, cluster):
    with pytest.raises(MembershipNotFoundError):
        await members("alice", "remove_member", cluster.id, "nobody")


async def test_removed_member_loses_visibility(members, cluster, make_identity, as_identity):
    await members("alice", "add_member", cluster.id, "bob")
    await members("alice", "remove_member", cluster.id, "bob")

    bob = make_identity("bob")
    with pytest.raises(ClusterNotFoundError):
        await as_identity("bob", lambda s: ClusterService(s).get_cluster(bob, cluster.id))


async def test_memberships_of_caller(members, cluster, as_identity, make_identity):
    alice = make_identity("alice")
    other = await as_identity("alice", lambda s: ClusterService(s).create_cluster(alice, {"name": "Other"}))
    await members("alice", "add_member", other.id, "bob", role=Role.ADMIN)

    mine = await members("bob", "memberships_of")
    assert [(m.cluster_id, m.role) for m in mine] == [(other.id, Role.ADMIN)]
