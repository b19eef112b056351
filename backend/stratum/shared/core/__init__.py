"""
Core Module

Provides core functionality shared across the application:
- Structured logging
- Custom exceptions
- Identity context
- Role permission matrix

Usage:
======
    from stratum.shared.core.logging import logger, get_logger
    from stratum.shared.core.exceptions import StratumException, NotFoundError
    from stratum.shared.core.identity import IdentityContext
    from stratum.shared.core.permissions import Role, Action, is_allowed
"""

from stratum.shared.core.logging import (
    logger,
    get_logger,
    log_context,
    unbind_log_context,
    clear_log_context,
)
from stratum.shared.core.exceptions import (
    StratumException,
    BadRequestError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ClusterNotFoundError,
    DomainNotFoundError,
    ResourceNotFoundError,
    MembershipNotFoundError,
    ConflictError,
    DuplicateResourceError,
    LastOwnerError,
    HasChildrenError,
    InternalError,
)
from stratum.shared.core.identity import IdentityContext
from stratum.shared.core.permissions import Role, Action, PERMISSION_MATRIX, is_allowed, strongest_role

__all__ = [
    # Logging
    "logger",
    "get_logger",
    "log_context",
    "unbind_log_context",
    "clear_log_context",
    # Exceptions
    "StratumException",
    "BadRequestError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ClusterNotFoundError",
    "DomainNotFoundError",
    "ResourceNotFoundError",
    "MembershipNotFoundError",
    "ConflictError",
    "DuplicateResourceError",
    "LastOwnerError",
    "HasChildrenError",
    "InternalError",
    # Identity & permissions
    "IdentityContext",
    "Role",
    "Action",
    "PERMISSION_MATRIX",
    "is_allowed",
    "strongest_role",
]
