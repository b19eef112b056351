"""
Stratum Backend

Hierarchical access control and data isolation for multi-tenant resources.

Package Structure:
==================
    stratum/
    ├── api/        ← FastAPI application
    ├── shared/     ← Shared code (models, services, db context, etc.)
    └── config/     ← Configuration

Hierarchy:
==========
    Cluster ──< ClusterDomainLink >── Domain ──< DomainResourceLink >── Resource
       │
       └──< ClusterMembership (owner | admin | member)

Running the Application:
========================
    # API Server
    uvicorn stratum.api.main:app --reload

    # Migrations (from backend/)
    alembic upgrade head
"""

__version__ = "1.0.0"
