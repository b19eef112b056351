# pylint: skip-file
# ruff: noqa
"""
Alembic Environment Configuration

This module configures Alembic for async SQLAlchemy with PostgreSQL.
It supports both online (connected to database) and offline (generating SQL) modes.

Run migrations as the table owner. The application should connect as a
separate, non-owner role so the row-level security policies apply to it.

Note: This file uses Alembic's runtime proxy pattern (alembic.context, alembic.op)
which are populated at migration runtime and cannot be statically analyzed.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from stratum.config.settings import settings
from stratum.shared.models.base import Base

# Import all models to register them with SQLAlchemy's metadata.
# Models must be imported before accessing Base.metadata.
from stratum.shared.models import (
    Cluster,
    ClusterDomainLink,
    ClusterMembership,
    Domain,
    DomainResourceLink,
    Resource,
)

REGISTERED_MODELS = (
    Cluster,
    ClusterDomainLink,
    ClusterMembership,
    Domain,
    DomainResourceLink,
    Resource,
)

# Alembic Config object - provides access to .ini file values
config = context.config

# Set database URL from settings (not hardcoded in alembic.ini)
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for 'autogenerate' support
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Usage:
        alembic upgrade head --sql > migration.sql
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations against a live database using the async engine."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
