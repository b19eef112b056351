"""
Custom Exceptions

Application-specific exceptions with HTTP status codes and error codes.

Repositories and services raise these; only the API error handler turns them
into response envelopes. Nothing below the handler formats a response.

Exception Hierarchy:
====================
    StratumException (base, 500)
       │
       ├── BadRequestError (400)        ← Malformed input (bad params, unknown sort field)
       ├── AuthenticationError (401)    ← Missing/invalid identity token
       ├── AuthorizationError (403)     ← Role lacks the permission
       ├── NotFoundError (404)          ← Absent, or filtered out by row policy
       │      ├── ClusterNotFoundError
       │      ├── DomainNotFoundError
       │      ├── ResourceNotFoundError
       │      └── MembershipNotFoundError
       ├── ConflictError (409)          ← Invariant violation
       │      ├── DuplicateResourceError
       │      ├── LastOwnerError
       │      └── HasChildrenError
       ├── ValidationError (422)        ← Field-level validation failure
       └── InternalError (500)          ← Unexpected store failure

Error Envelope:
===============
    {
        "success": false,
        "error": "Cluster with id '...' not found",
        "error_code": "NOT_FOUND",
        "field_errors": {"name": ["can't be blank"]}     # ValidationError only
    }
"""

from typing import Any, Optional


class StratumException(Exception):
    """
    Base exception for all Stratum application errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (default 500)
        error_code: Machine-readable error code
        errors: Optional list of additional messages
        field_errors: Optional per-field messages
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        errors: Optional[list[str]] = None,
        field_errors: Optional[dict[str, list[str]]] = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.errors = errors or []
        self.field_errors = field_errors or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the failure envelope.

        Returns:
            Dictionary for the JSON response body
        """
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.errors:
            body["errors"] = list(self.errors)
        if self.field_errors:
            body["field_errors"] = {k: list(v) for k, v in self.field_errors.items()}
        return body


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT ERRORS (400, 422)
# ═══════════════════════════════════════════════════════════════════════════════


class BadRequestError(StratumException):
    """Malformed input (400 Bad Request)."""

    status_code = 400
    error_code = "BAD_REQUEST"

    def __init__(
        self,
        message: str = "Malformed request",
        errors: Optional[list[str]] = None,
        field_errors: Optional[dict[str, list[str]]] = None,
    ) -> None:
        super().__init__(message=message, errors=errors, field_errors=field_errors)


class ValidationError(StratumException):
    """
    Validation error (422 Unprocessable Entity).

    Raised when input is well-formed but violates attribute constraints.

    Example:
        raise ValidationError(field_errors={"name": ["can't be blank"]})
    """

    status_code = 422
    error_code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[dict[str, list[str]]] = None,
        errors: Optional[list[str]] = None,
    ) -> None:
        if errors is None and field_errors:
            errors = [f"{field} {msg}" for field, msgs in field_errors.items() for msg in msgs]
        super().__init__(message=message, errors=errors, field_errors=field_errors)


# ═══════════════════════════════════════════════════════════════════════════════
# AUTHENTICATION & AUTHORIZATION ERRORS (401, 403)
# ═══════════════════════════════════════════════════════════════════════════════


class AuthenticationError(StratumException):
    """
    Authentication failed error (401 Unauthorized).

    Raised when:
    - Authorization header is missing
    - Token is expired, malformed or badly signed
    - Identity claim is missing or unusable
    """

    status_code = 401
    error_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message)


class AuthorizationError(StratumException):
    """
    Authorization failed error (403 Forbidden).

    Raised when the caller is a member of the cluster but its role
    does not grant the requested action.
    """

    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message=message)


# ═══════════════════════════════════════════════════════════════════════════════
# NOT FOUND ERRORS (404)
# ═══════════════════════════════════════════════════════════════════════════════


class NotFoundError(StratumException):
    """
    Resource not found error (404 Not Found).

    Used both for rows that do not exist and for rows hidden by the row
    filtering policy, so callers cannot probe for existence.

    Example:
        raise NotFoundError("Cluster", cluster_id)
        # Message: "Cluster with id 'abc-123' not found"
    """

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[Any] = None) -> None:
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message=message)


class ClusterNotFoundError(NotFoundError):
    """Cluster not found error."""

    def __init__(self, cluster_id: Any) -> None:
        super().__init__(resource="Cluster", resource_id=cluster_id)


class DomainNotFoundError(NotFoundError):
    """Domain not found error."""

    def __init__(self, domain_id: Any) -> None:
        super().__init__(resource="Domain", resource_id=domain_id)


class ResourceNotFoundError(NotFoundError):
    """Resource not found error."""

    def __init__(self, resource_id: Any) -> None:
        super().__init__(resource="Resource", resource_id=resource_id)


class MembershipNotFoundError(NotFoundError):
    """Membership not found error."""

    def __init__(self, identity_id: Any) -> None:
        super().__init__(resource="Membership", resource_id=identity_id)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFLICT ERRORS (409)
# ═══════════════════════════════════════════════════════════════════════════════


class ConflictError(StratumException):
    """
    Invariant violation (409 Conflict).

    Example:
        raise ConflictError("Cluster still has linked domains")
    """

    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message=message)


class DuplicateResourceError(ConflictError):
    """Non-idempotent create hit an existing unique key."""

    error_code = "DUPLICATE"

    def __init__(self, message: str = "Resource already exists") -> None:
        super().__init__(message=message)


class LastOwnerError(ConflictError):
    """The change would leave a cluster without an owner."""

    error_code = "LAST_OWNER"

    def __init__(self, message: str = "A cluster must keep at least one owner") -> None:
        super().__init__(message=message)


class HasChildrenError(ConflictError):
    """Delete attempted while live children are still linked."""

    error_code = "HAS_CHILDREN"

    def __init__(self, resource: str, children: str) -> None:
        super().__init__(message=f"{resource} cannot be deleted while {children} are linked")


# ═══════════════════════════════════════════════════════════════════════════════
# INTERNAL ERRORS (500)
# ═══════════════════════════════════════════════════════════════════════════════


class InternalError(StratumException):
    """Unexpected failure. The message is never shown to callers."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message=message)
