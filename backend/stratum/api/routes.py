"""
Route Registration

Centralizes all route registration for the FastAPI application.

Route Hierarchy:
================
    /health, /ready, /live          → Health check endpoints (no token)
    /clusters                       → Clusters and their linked domains
    /clusters/{cluster_id}/members  → Membership registry
    /domains                        → Domains and their linked resources
    /resources                      → Resources
    /me                             → The caller and its memberships

Usage:
======
    from stratum.api.routes import register_routes

    app = FastAPI()
    register_routes(app)
"""

from fastapi import FastAPI

from stratum.api.handlers import (
    cluster_handler,
    domain_handler,
    health_handler,
    me_handler,
    member_handler,
    resource_handler,
)


def register_routes(app: FastAPI) -> None:
    """
    Register all API routes.

    Args:
        app: FastAPI application instance
    """
    # Health check endpoints (no prefix, root level)
    app.include_router(
        health_handler.router,
        tags=["Health"],
    )

    # Cluster endpoints
    app.include_router(
        cluster_handler.router,
        prefix="/clusters",
        tags=["Clusters"],
    )

    # Membership endpoints
    app.include_router(
        member_handler.router,
        prefix="/clusters/{cluster_id}/members",
        tags=["Members"],
    )

    # Domain endpoints
    app.include_router(
        domain_handler.router,
        prefix="/domains",
        tags=["Domains"],
    )

    # Resource endpoints
    app.include_router(
        resource_handler.router,
        prefix="/resources",
        tags=["Resources"],
    )

    # Caller endpoints
    app.include_router(
        me_handler.router,
        prefix="/me",
        tags=["Me"],
    )
