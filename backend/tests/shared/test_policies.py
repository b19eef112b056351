"""The row-level security DDL is rendered from the same predicates as the ORM filter."""

from sqlalchemy.dialects import sqlite

from stratum.shared.db.policies import (
    CLUSTERS_WITH_MEMBERS_FUNCTION,
    MEMBER_CLUSTERS_FUNCTION,
    PROTECTED_TABLES,
    TableMembershipSource,
    cluster_visibility,
    create_policy_statements,
    drop_policy_statements,
    policy_name,
    policy_predicates,
)

SETTING = "stratum.identity_id"


def test_every_protected_table_gets_a_predicate():
    predicates = policy_predicates(SETTING)
    assert set(predicates) == set(PROTECTED_TABLES)


def test_predicates_read_the_transaction_setting():
    for predicate in policy_predicates(SETTING).values():
        assert "current_setting('stratum.identity_id', true)" in predicate


def test_cluster_predicate_uses_definer_functions():
    predicate = policy_predicates(SETTING)["clusters"]
    assert MEMBER_CLUSTERS_FUNCTION in predicate
    assert CLUSTERS_WITH_MEMBERS_FUNCTION in predicate
    # cluster_memberships is protected too; its policy must not query it directly
    assert "FROM cluster_memberships" not in predicate


def test_resource_predicate_is_transitive_through_domains():
    predicate = policy_predicates(SETTING)["resources"]
    assert "domain_resource_links" in predicate
    assert "cluster_domain_links" in predicate


def test_create_statements_enable_and_define_one_policy_per_table():
    statements = create_policy_statements(SETTING)
    joined = "\n".join(statements)
    for table in PROTECTED_TABLES:
        assert f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY" in statements
        assert f"CREATE POLICY {policy_name(table)} ON {table} FOR ALL USING (" in joined
    assert "SECURITY DEFINER" in joined
    assert "FORCE ROW LEVEL SECURITY" not in joined


def test_drop_statements_mirror_create():
    statements = drop_policy_statements()
    for table in PROTECTED_TABLES:
        assert f"DROP POLICY IF EXISTS {policy_name(table)} ON {table}" in statements
    assert statements[-1].startswith("DROP FUNCTION IF EXISTS")


def test_orm_predicate_binds_identity_as_parameter():
    compiled = cluster_visibility(TableMembershipSource(), "alice' OR '1'='1").compile(dialect=sqlite.dialect())
    assert "alice" not in str(compiled)
    assert "alice' OR '1'='1" in compiled.params.values()
