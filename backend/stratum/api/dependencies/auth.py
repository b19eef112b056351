"""
Authentication Dependencies

FastAPI dependencies turning a Bearer token into an IdentityContext.

Dependency Hierarchy:
=====================
    get_current_token_payload()  ← Extract and verify JWT from header
           │
           ▼
    get_current_identity()       ← Build the immutable IdentityContext

Type Aliases:
=============
    CurrentIdentity - Verified caller identity

Usage:
======
    from stratum.api.dependencies.auth import CurrentIdentity

    @router.get("/me")
    async def get_me(identity: CurrentIdentity):
        return identity.identity_id
"""

from typing import Annotated, Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stratum.config.settings import settings
from stratum.shared.core.exceptions import AuthenticationError
from stratum.shared.core.identity import IdentityContext
from stratum.shared.utils.security import SecurityUtils


# auto_error=False so a missing header reaches our 401 envelope instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def get_current_token_payload(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)] = None,
) -> dict[str, Any]:
    """
    Extract and verify the JWT from the Authorization header.

    Raises:
        AuthenticationError: If token is missing, expired or invalid
    """
    if not credentials:
        raise AuthenticationError("Authorization header required")

    try:
        return SecurityUtils.decode_identity_token(
            credentials.credentials,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            audience=settings.JWT_AUDIENCE,
        )
    except ValueError as e:
        raise AuthenticationError(str(e)) from e


async def get_current_identity(
    payload: Annotated[dict[str, Any], Depends(get_current_token_payload)],
) -> IdentityContext:
    """
    Build the caller's IdentityContext from a verified payload.

    Raises:
        AuthenticationError: If the identity claim is missing or malformed
    """
    return IdentityContext.from_claims(payload, identity_claim=settings.JWT_IDENTITY_CLAIM)


# ═══════════════════════════════════════════════════════════════════════════════
# TYPE ALIASES
# ═══════════════════════════════════════════════════════════════════════════════

CurrentIdentity = Annotated[IdentityContext, Depends(get_current_identity)]
