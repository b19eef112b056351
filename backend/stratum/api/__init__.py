"""
API Module

FastAPI application and route handlers.

Package Structure:
==================
    api/
    ├── main.py           ← Application entry point
    ├── routes.py         ← Route registration
    ├── dependencies/     ← FastAPI dependencies (identity, session, services)
    ├── handlers/         ← Route handlers
    └── middleware/       ← Error envelope and request logging

Usage:
======
    # Run the API
    uvicorn stratum.api.main:app --reload

    # Import the app
    from stratum.api.main import app, create_application
"""
