"""
Row Visibility Policies

The one definition of "which rows may this identity see". It is rendered in
two places from the same SQLAlchemy expressions:

1. ORM layer (row_filter.py): attached to every ORM SELECT through
   with_loader_criteria, with the identity as a bound parameter.
2. PostgreSQL (migration 001): compiled into CREATE POLICY statements for
   row-level security, with the identity read from a transaction-local
   setting via current_setting().

Visibility Rules:
=================
    Cluster            caller holds a membership in it,
                       or caller created it and it has no memberships yet
    ClusterMembership  its cluster is visible
    Domain             linked to a visible cluster,
                       or caller created it and it is not linked anywhere
    Resource           linked to a visible domain,
                       or caller created it and it is not linked anywhere

This layer only asks "any membership?". The role matrix is enforced by the
authorization service. All subqueries are uncorrelated IN / NOT IN over
indexed join keys.

Membership Sources:
===================
Inside PostgreSQL the membership lookups go through SECURITY DEFINER
functions, because cluster_memberships is itself protected and a policy
cannot query its own table. The ORM layer reads the table directly.

Migrations run as the table owner and the application connects as a separate
non-owner role, so the policies bind the application while the functions
(executing as the owner) read memberships unfiltered.
"""

from typing import Any, Union

from sqlalchemy import ColumnElement, and_, func, or_, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.sql import Select

from stratum.shared.models import (
    Cluster,
    ClusterDomainLink,
    ClusterMembership,
    Domain,
    DomainResourceLink,
    Resource,
)

IdentityExpr = Union[str, ColumnElement[Any]]

memberships_table = ClusterMembership.__table__
clusters_table = Cluster.__table__
domains_table = Domain.__table__
resources_table = Resource.__table__
cluster_domain_links_table = ClusterDomainLink.__table__
domain_resource_links_table = DomainResourceLink.__table__

MEMBER_CLUSTERS_FUNCTION = "stratum_member_cluster_ids"
CLUSTERS_WITH_MEMBERS_FUNCTION = "stratum_clusters_with_members"

PROTECTED_TABLES = (
    "clusters",
    "cluster_memberships",
    "domains",
    "resources",
)


# ═══════════════════════════════════════════════════════════════════════════════
# MEMBERSHIP SOURCES
# ═══════════════════════════════════════════════════════════════════════════════


def _uncorrelated(stmt: Select) -> Select:
    # Attached to arbitrary outer queries; must never correlate into them
    return stmt.correlate(None)


class TableMembershipSource:
    """Reads cluster_memberships directly (ORM layer)."""

    def member_cluster_ids(self, identity: IdentityExpr) -> Select:
        return _uncorrelated(
            select(memberships_table.c.cluster_id).where(memberships_table.c.identity_id == identity)
        )

    def clusters_with_members(self) -> Select:
        return _uncorrelated(select(memberships_table.c.cluster_id))


class FunctionMembershipSource:
    """Reads memberships through SECURITY DEFINER functions (PostgreSQL policies)."""

    def member_cluster_ids(self, identity: IdentityExpr) -> Select:
        fn = getattr(func, MEMBER_CLUSTERS_FUNCTION)
        return _uncorrelated(select(fn(identity).column_valued("cluster_id")))

    def clusters_with_members(self) -> Select:
        fn = getattr(func, CLUSTERS_WITH_MEMBERS_FUNCTION)
        return _uncorrelated(select(fn().column_valued("cluster_id")))


MembershipSource = Union[TableMembershipSource, FunctionMembershipSource]


# ═══════════════════════════════════════════════════════════════════════════════
# PREDICATES
# ═══════════════════════════════════════════════════════════════════════════════


def cluster_visibility(
    source: MembershipSource,
    identity: IdentityExpr,
    id_col: Any = Cluster.id,
    created_by_col: Any = Cluster.created_by,
) -> ColumnElement[bool]:
    return or_(
        id_col.in_(source.member_cluster_ids(identity)),
        and_(
            created_by_col == identity,
            id_col.not_in(source.clusters_with_members()),
        ),
    )


def membership_visibility(
    source: MembershipSource,
    identity: IdentityExpr,
    cluster_id_col: Any = ClusterMembership.cluster_id,
) -> ColumnElement[bool]:
    return cluster_id_col.in_(_visible_cluster_ids(source, identity))


def _visible_cluster_ids(source: MembershipSource, identity: IdentityExpr) -> Select:
    return _uncorrelated(
        select(clusters_table.c.id).where(
            cluster_visibility(source, identity, clusters_table.c.id, clusters_table.c.created_by)
        )
    )


def _visible_domain_ids(source: MembershipSource, identity: IdentityExpr) -> Select:
    return _uncorrelated(
        select(domains_table.c.id).where(
            domain_visibility(source, identity, domains_table.c.id, domains_table.c.created_by)
        )
    )


def domain_visibility(
    source: MembershipSource,
    identity: IdentityExpr,
    id_col: Any = Domain.id,
    created_by_col: Any = Domain.created_by,
) -> ColumnElement[bool]:
    links = cluster_domain_links_table
    return or_(
        id_col.in_(
            _uncorrelated(
                select(links.c.domain_id).where(links.c.cluster_id.in_(_visible_cluster_ids(source, identity)))
            )
        ),
        and_(
            created_by_col == identity,
            id_col.not_in(_uncorrelated(select(links.c.domain_id))),
        ),
    )


def resource_visibility(
    source: MembershipSource,
    identity: IdentityExpr,
    id_col: Any = Resource.id,
    created_by_col: Any = Resource.created_by,
) -> ColumnElement[bool]:
    links = domain_resource_links_table
    return or_(
        id_col.in_(
            _uncorrelated(
                select(links.c.resource_id).where(links.c.domain_id.in_(_visible_domain_ids(source, identity)))
            )
        ),
        and_(
            created_by_col == identity,
            id_col.not_in(_uncorrelated(select(links.c.resource_id))),
        ),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# POSTGRESQL ROW-LEVEL SECURITY DDL
# ═══════════════════════════════════════════════════════════════════════════════


def current_identity(setting_name: str) -> ColumnElement[Any]:
    """current_setting(name, true): NULL when unset, so unbound sessions match nothing."""
    return func.nullif(func.current_setting(setting_name, True), "")


def _compile(expr: ColumnElement[Any]) -> str:
    return str(
        expr.compile(
            dialect=postgresql.dialect(),
            compile_kwargs={"literal_binds": True},
        )
    )


def policy_predicates(setting_name: str) -> dict[str, str]:
    """
    Render the visibility predicates as PostgreSQL SQL text.

    Returns:
        Mapping of table name to its USING expression
    """
    source = FunctionMembershipSource()
    identity = current_identity(setting_name)
    return {
        "clusters": _compile(
            cluster_visibility(source, identity, clusters_table.c.id, clusters_table.c.created_by)
        ),
        "cluster_memberships": _compile(
            membership_visibility(source, identity, memberships_table.c.cluster_id)
        ),
        "domains": _compile(
            domain_visibility(source, identity, domains_table.c.id, domains_table.c.created_by)
        ),
        "resources": _compile(
            resource_visibility(source, identity, resources_table.c.id, resources_table.c.created_by)
        ),
    }


def policy_name(table: str) -> str:
    return f"{table}_membership_isolation"


def create_policy_statements(setting_name: str) -> list[str]:
    """
    Build the full row-level security setup.

    Order: membership lookup functions, then per table ENABLE and
    one FOR ALL policy whose USING clause doubles as WITH CHECK.
    """
    statements = [
        f"""
        CREATE OR REPLACE FUNCTION {MEMBER_CLUSTERS_FUNCTION}(identity text)
        RETURNS SETOF uuid
        LANGUAGE sql STABLE SECURITY DEFINER
        SET search_path = public
        AS $$ SELECT cluster_id FROM cluster_memberships WHERE identity_id = identity $$
        """,
        f"""
        CREATE OR REPLACE FUNCTION {CLUSTERS_WITH_MEMBERS_FUNCTION}()
        RETURNS SETOF uuid
        LANGUAGE sql STABLE SECURITY DEFINER
        SET search_path = public
        AS $$ SELECT DISTINCT cluster_id FROM cluster_memberships $$
        """,
    ]
    for table, predicate in policy_predicates(setting_name).items():
        statements.append(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        statements.append(
            f"CREATE POLICY {policy_name(table)} ON {table} FOR ALL USING ({predicate})"
        )
    return statements


def drop_policy_statements() -> list[str]:
    statements = []
    for table in PROTECTED_TABLES:
        statements.append(f"DROP POLICY IF EXISTS {policy_name(table)} ON {table}")
        statements.append(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")
    statements.append(f"DROP FUNCTION IF EXISTS {CLUSTERS_WITH_MEMBERS_FUNCTION}()")
    statements.append(f"DROP FUNCTION IF EXISTS {MEMBER_CLUSTERS_FUNCTION}(text)")
    return statements
