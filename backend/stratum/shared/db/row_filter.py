"""
ORM Row Filter

Attaches the visibility predicates from policies.py to every ORM SELECT
issued through a Stratum session, using the identity bound by the session
context propagator.

    session.execute(select(Cluster))
        │
        ▼  do_orm_execute
    SELECT ... FROM clusters
    WHERE clusters.id IN (SELECT cluster_id FROM cluster_memberships WHERE identity_id = :id)
       OR (clusters.created_by = :id AND clusters.id NOT IN (...))

with_loader_criteria applies to every occurrence of the entity, including
subqueries and joins. A session with no bound identity sees no protected
rows at all.

Column refreshes and relationship loads of already-visible objects are not
re-filtered; they can only reach rows a filtered SELECT returned first.
"""

from typing import Optional

from sqlalchemy import event, false
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria
from sqlalchemy.orm.interfaces import ORMOption

from stratum.shared.core.identity import IdentityContext
from stratum.shared.db.policies import (
    TableMembershipSource,
    cluster_visibility,
    domain_visibility,
    membership_visibility,
    resource_visibility,
)
from stratum.shared.models import Cluster, ClusterMembership, Domain, Resource

IDENTITY_INFO_KEY = "stratum.identity"

_source = TableMembershipSource()


def bound_identity(session: Session) -> Optional[IdentityContext]:
    """Return the identity bound to a session, if any."""
    return session.info.get(IDENTITY_INFO_KEY)


def row_filter_options(identity: Optional[IdentityContext]) -> list[ORMOption]:
    """
    Build the loader criteria for the protected entities.

    Args:
        identity: Bound identity, or None for a session without one

    Returns:
        with_loader_criteria options for Cluster, ClusterMembership, Domain, Resource
    """
    if identity is None:
        return [
            with_loader_criteria(entity, false())
            for entity in (Cluster, ClusterMembership, Domain, Resource)
        ]

    identity_id = identity.identity_id
    return [
        with_loader_criteria(Cluster, cluster_visibility(_source, identity_id)),
        with_loader_criteria(ClusterMembership, membership_visibility(_source, identity_id)),
        with_loader_criteria(Domain, domain_visibility(_source, identity_id)),
        with_loader_criteria(Resource, resource_visibility(_source, identity_id)),
    ]


def _apply_row_filter(execute_state: ORMExecuteState) -> None:
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
    ):
        identity = bound_identity(execute_state.session)
        execute_state.statement = execute_state.statement.options(*row_filter_options(identity))


def install_row_filter(session_class: type[Session]) -> None:
    """Register the filter on a Session class (idempotent)."""
    if not event.contains(session_class, "do_orm_execute", _apply_row_filter):
        event.listen(session_class, "do_orm_execute", _apply_row_filter)
