# pylint: skip-file
# ruff: noqa
"""Initial schema - hierarchy, memberships, links and row policies

Revision ID: 001
Revises:
Create Date: 2026-10-16 00:00:00

Tables created:
- clusters: Top-level tenant containers
- domains: Second level, linked into clusters
- resources: Leaves, linked into domains
- cluster_memberships: Identity ↔ cluster with a role
- cluster_domain_links: Junction cluster ↔ domain
- domain_resource_links: Junction domain ↔ resource

Enums created:
- membership_role: owner, admin, member

Row-level security:
- Membership lookup functions (SECURITY DEFINER)
- One isolation policy per protected table, keyed on the per-transaction
  identity setting
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from stratum.config.settings import settings
from stratum.shared.db.policies import create_policy_statements, drop_policy_statements

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


membership_role_enum = postgresql.ENUM(
    "owner",
    "admin",
    "member",
    name="membership_role",
    create_type=False,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _entity_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_by", sa.String(255), nullable=False, index=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute("CREATE TYPE membership_role AS ENUM ('owner', 'admin', 'member')")

    # Create clusters table
    op.create_table(
        "clusters",
        *_entity_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index(
        "uq_clusters_creator_name_live",
        "clusters",
        ["created_by", "name"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    # Create domains table
    op.create_table(
        "domains",
        *_entity_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )

    # Create resources table
    op.create_table(
        "resources",
        *_entity_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=True, index=True),
        sa.Column(
            "configuration",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )

    # Create cluster_memberships table
    op.create_table(
        "cluster_memberships",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "cluster_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clusters.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("identity_id", sa.String(255), nullable=False, index=True),
        sa.Column("role", membership_role_enum, nullable=False, server_default="member"),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
    )
    # Unique constraint: one membership per identity per cluster
    op.create_unique_constraint(
        "uq_cluster_memberships_cluster_identity",
        "cluster_memberships",
        ["cluster_id", "identity_id"],
    )

    # Create cluster_domain_links table (junction table)
    op.create_table(
        "cluster_domain_links",
        sa.Column(
            "cluster_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clusters.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "domain_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("domains.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )

    # Create domain_resource_links table (junction table)
    op.create_table(
        "domain_resource_links",
        sa.Column(
            "domain_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("domains.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "resource_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("resources.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )

    # Row-level security
    for statement in create_policy_statements(settings.IDENTITY_SETTING_NAME):
        op.execute(statement)


def downgrade() -> None:
    """Downgrade database schema."""
    for statement in drop_policy_statements():
        op.execute(statement)

    # Drop tables in reverse order (respect foreign keys)
    op.drop_table("domain_resource_links")
    op.drop_table("cluster_domain_links")
    op.drop_table("cluster_memberships")
    op.drop_table("resources")
    op.drop_table("domains")
    op.drop_index("uq_clusters_creator_name_live", table_name="clusters")
    op.drop_table("clusters")

    op.execute("DROP TYPE IF EXISTS membership_role")
