import pytest

from stratum.shared.core.permissions import PERMISSION_MATRIX, Action, Role, is_allowed, strongest_role


@pytest.mark.parametrize(
    "role, allowed",
    [
        (Role.OWNER, set(Action)),
        (Role.ADMIN, {Action.VIEW, Action.EDIT, Action.MANAGE_MEMBERS}),
        (Role.MEMBER, {Action.VIEW}),
    ],
)
def test_matrix_grants_exactly(role, allowed):
    for action in Action:
        assert is_allowed(role, action) is (action in allowed)


def test_no_role_grants_nothing():
    assert not any(is_allowed(None, action) for action in Action)


def test_matrix_is_read_only():
    with pytest.raises(TypeError):
        PERMISSION_MATRIX[Role.MEMBER] = frozenset(Action)  # type: ignore[index]


def test_strongest_role():
    assert strongest_role([Role.MEMBER, Role.OWNER, Role.ADMIN]) is Role.OWNER
    assert strongest_role([None, Role.MEMBER]) is Role.MEMBER
    assert strongest_role([]) is None
