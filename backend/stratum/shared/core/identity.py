"""
Identity Context

Immutable, verified representation of the caller for one request.

Built once per inbound request from a verified token and then passed
explicitly to every service call and to the session context propagator.
There is no global "current user".

Usage:
======
    identity = IdentityContext.from_claims(payload, identity_claim="sub")
    identity.identity_id   # "user-123"
    identity.claims["email"]
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from stratum.shared.core.exceptions import AuthenticationError

MAX_IDENTITY_LENGTH = 255


def validate_identity_id(identity_id: Any) -> str:
    """
    Check an identity id is usable as a membership key and session setting.

    Raises:
        AuthenticationError: If the id is empty, too long or contains control characters
    """
    if not isinstance(identity_id, str) or not identity_id.strip():
        raise AuthenticationError("Identity is missing")
    if len(identity_id) > MAX_IDENTITY_LENGTH:
        raise AuthenticationError("Identity is malformed")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in identity_id):
        raise AuthenticationError("Identity is malformed")
    return identity_id


@dataclass(frozen=True)
class IdentityContext:
    """
    The verified caller.

    Attributes:
        identity_id: Unique identifier issued by the identity provider
        claims: Read-only view of the remaining token claims
    """

    identity_id: str
    claims: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        validate_identity_id(self.identity_id)
        if not isinstance(self.claims, MappingProxyType):
            object.__setattr__(self, "claims", MappingProxyType(dict(self.claims)))

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any], identity_claim: str = "sub") -> "IdentityContext":
        """
        Build the context from a decoded token payload.

        Raises:
            AuthenticationError: If the identity claim is absent or malformed
        """
        identity_id = claims.get(identity_claim)
        if identity_id is None:
            raise AuthenticationError("Invalid token payload")
        return cls(identity_id=str(identity_id), claims=dict(claims))

    @property
    def email(self) -> str | None:
        return self.claims.get("email")

    def __repr__(self) -> str:
        return f"<IdentityContext(identity_id={self.identity_id})>"
