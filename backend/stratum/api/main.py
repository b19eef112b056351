"""
Stratum API Application Entry Point

FastAPI application setup with all routers, middleware, and lifecycle management.

Application Architecture:
=========================
┌─────────────────────────────────────────────────────────────────────────────┐
│                           STRATUM API                                       │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │                    Middleware Stack                          │          │
│   │  ┌─────────────────────────────────────────────────────┐    │          │
│   │  │ CORS Middleware                                      │    │          │
│   │  │ Request Logging (request_id, method, path)           │    │          │
│   │  │ Error Handler                                        │    │          │
│   │  └─────────────────────────────────────────────────────┘    │          │
│   └─────────────────────────────────────────────────────────────┘          │
│                              │                                              │
│                              ▼                                              │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │                       Routers                                │          │
│   │  ┌────────┐ ┌──────────┐ ┌─────────┐ ┌─────────┐ ┌───────────┐ ┌────┐ │
│   │  │ Health │ │ Clusters │ │ Members │ │ Domains │ │ Resources │ │ Me │ │
│   │  └────────┘ └──────────┘ └─────────┘ └─────────┘ └───────────┘ └────┘ │
│   └─────────────────────────────────────────────────────────────┘          │
│                              │                                              │
│                              ▼                                              │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │                Dependencies (Injected)                       │          │
│   │  ┌──────────┐ ┌───────────────────────┐ ┌──────────┐        │          │
│   │  │ Identity │ │ Identity-bound Session│ │ Services │        │          │
│   │  └──────────┘ └───────────────────────┘ └──────────┘        │          │
│   └─────────────────────────────────────────────────────────────┘          │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘

Lifecycle:
==========
1. Application starts → lifespan startup
2. Database connectivity verified
3. Application serves requests
4. Application stops → lifespan shutdown
5. Database connections closed

Usage:
======
    # Run with uvicorn
    uvicorn stratum.api.main:app --host 0.0.0.0 --port 8000 --reload

    # Or programmatically
    from stratum.api.main import create_application
    app = create_application()
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stratum.config.settings import settings
from stratum.shared.db import init_db, close_db
from stratum.shared.core.logging import logger
from stratum.api.middleware import setup_exception_handlers, RequestLoggingMiddleware
from stratum.api.routes import register_routes


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup:
    - Verify database connectivity

    Shutdown:
    - Close database connections
    """
    # ═══════════════════════════════════════════════════════════════════════════
    # STARTUP
    # ═══════════════════════════════════════════════════════════════════════════
    logger.info(
        "Starting Stratum API",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
    )

    await init_db()

    logger.info("Stratum API started successfully")

    yield

    # ═══════════════════════════════════════════════════════════════════════════
    # SHUTDOWN
    # ═══════════════════════════════════════════════════════════════════════════
    logger.info("Shutting down Stratum API")

    await close_db()

    logger.info("Stratum API shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance

    This factory function:
    1. Creates the FastAPI app with settings
    2. Adds middleware (CORS, request logging)
    3. Sets up exception handlers
    4. Registers all routes
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Multi-tenant Cluster → Domain → Resource hierarchy with role-based access",
        version=settings.APP_VERSION,
        # Only show docs in development
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # MIDDLEWARE
    # ═══════════════════════════════════════════════════════════════════════════

    app.add_middleware(RequestLoggingMiddleware)

    # CORS added last so it wraps everything else
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # EXCEPTION HANDLERS
    # ═══════════════════════════════════════════════════════════════════════════

    setup_exception_handlers(app)

    # ═══════════════════════════════════════════════════════════════════════════
    # ROUTES
    # ═══════════════════════════════════════════════════════════════════════════

    register_routes(app)

    return app


# Create the application instance
app = create_application()
