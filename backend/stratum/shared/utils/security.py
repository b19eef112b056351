"""
Security Utilities

Identity token verification (and minting, for local use and tests).

JWT Tokens:
===========
Uses PyJWT. Production tokens are issued by the identity provider; Stratum
only verifies the signature, expiry and (optionally) audience, then reads
the subject claim.

Usage:
======
    from stratum.shared.utils.security import SecurityUtils

    # Mint a token (development / tests)
    token = SecurityUtils.create_identity_token(
        identity_id="user-a",
        secret_key="secret",
        expires_delta=timedelta(hours=1),
    )

    # Verify a token
    payload = SecurityUtils.decode_identity_token(token, "secret")
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt


class SecurityUtils:
    """
    Security utilities for identity tokens.
    """

    @staticmethod
    def create_identity_token(
        identity_id: str,
        secret_key: str,
        expires_delta: Optional[timedelta] = None,
        algorithm: str = "HS256",
        identity_claim: str = "sub",
        audience: Optional[str] = None,
        extra_claims: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Create a signed identity token.

        Args:
            identity_id: Subject identifier placed in identity_claim
            secret_key: Secret key for signing
            expires_delta: Token lifetime (default: 1 hour)
            algorithm: JWT algorithm (default: HS256)
            identity_claim: Claim carrying the identity id
            audience: Optional aud claim
            extra_claims: Additional claims, e.g. {"email": ...}

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        to_encode: dict[str, Any] = dict(extra_claims or {})
        to_encode.update({
            identity_claim: identity_id,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=1)),
        })
        if audience:
            to_encode["aud"] = audience

        return jwt.encode(to_encode, secret_key, algorithm=algorithm)

    @staticmethod
    def decode_identity_token(
        token: str,
        secret_key: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Decode and verify an identity token.

        Returns:
            Decoded token payload

        Raises:
            ValueError: If token is expired or invalid
        """
        try:
            return jwt.decode(
                token,
                secret_key,
                algorithms=[algorithm],
                audience=audience,
                options={"verify_aud": audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid token: {str(e)}")
