"""
Shared Module

Everything below the HTTP layer:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Services: Business logic and the authorization guard
- Schemas: Pydantic request/response models
- DB: Sessions, row filter, identity propagation, row-level security DDL
- Core: Logging, exceptions, identity, permission matrix

Package Structure:
==================
    shared/
    ├── core/           ← Logging, exceptions, identity, permissions
    ├── db/             ← Session management and row visibility
    ├── models/         ← SQLAlchemy models
    ├── repositories/   ← Data access layer
    ├── services/       ← Business logic
    ├── schemas/        ← Pydantic schemas
    ├── migrations/     ← Alembic environment and revisions
    └── utils/          ← Token utilities

Usage:
======
    from stratum.shared.models import Cluster, Domain, Resource
    from stratum.shared.services import ClusterService
    from stratum.shared.core import logger, StratumException
"""
