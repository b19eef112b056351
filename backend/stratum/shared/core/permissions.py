"""
Role Permission Matrix

The single source of role semantics for the authorization guard.

    | Role   | view | edit | delete | manage_members | change_owner |
    |--------|------|------|--------|----------------|--------------|
    | owner  | ✓    | ✓    | ✓      | ✓              | ✓            |
    | admin  | ✓    | ✓    | ✗      | ✓              | ✗            |
    | member | ✓    | ✗    | ✗      | ✗              | ✗            |

The matrix is fixed and process-wide. The database row policy only needs
"has any membership", which every role satisfies.
"""

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


class Role(str, Enum):
    """Membership role within a cluster."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Action(str, Enum):
    """Operations the guard can be asked about."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE_MEMBERS = "manage_members"
    CHANGE_OWNER = "change_owner"


PERMISSION_MATRIX: Mapping[Role, frozenset[Action]] = MappingProxyType(
    {
        Role.OWNER: frozenset(Action),
        Role.ADMIN: frozenset({Action.VIEW, Action.EDIT, Action.MANAGE_MEMBERS}),
        Role.MEMBER: frozenset({Action.VIEW}),
    }
)


def is_allowed(role: Optional[Role], action: Action) -> bool:
    """Return True if the role grants the action. No role grants nothing."""
    if role is None:
        return False
    return action in PERMISSION_MATRIX[role]


# Higher rank wins when an entity is reachable through several clusters
ROLE_RANK: Mapping[Role, int] = MappingProxyType({Role.MEMBER: 1, Role.ADMIN: 2, Role.OWNER: 3})


def strongest_role(roles: Iterable[Optional[Role]]) -> Optional[Role]:
    ranked = [role for role in roles if role is not None]
    if not ranked:
        return None
    return max(ranked, key=ROLE_RANK.__getitem__)
