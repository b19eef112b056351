"""
API Handlers

Route handlers for the Stratum API.

Handlers follow the pattern:
- Parse HTTP requests
- Call service methods
- Format HTTP responses

All business logic is delegated to the service layer.
"""

from stratum.api.handlers import (
    cluster_handler,
    domain_handler,
    health_handler,
    me_handler,
    member_handler,
    resource_handler,
)

__all__ = [
    "cluster_handler",
    "domain_handler",
    "health_handler",
    "me_handler",
    "member_handler",
    "resource_handler",
]
