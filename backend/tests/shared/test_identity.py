from datetime import timedelta

import pytest

from stratum.shared.core.exceptions import AuthenticationError
from stratum.shared.core.identity import IdentityContext, validate_identity_id
from stratum.shared.utils.security import SecurityUtils


SECRET = "test-secret-that-is-long-enough-for-hs256"


@pytest.mark.parametrize("bad", [None, "", "   ", "a\x00b", "x" * 1000, 42])
def test_validate_identity_id_rejects(bad):
    with pytest.raises(AuthenticationError):
        validate_identity_id(bad)


def test_identity_context_is_immutable():
    ctx = IdentityContext(identity_id="alice", claims={"email": "alice@example.com"})
    assert ctx.email == "alice@example.com"
    with pytest.raises(Exception):
        ctx.identity_id = "mallory"  # type: ignore[misc]
    with pytest.raises(TypeError):
        ctx.claims["email"] = "mallory@example.com"  # type: ignore[index]


def test_from_claims_uses_configured_claim():
    ctx = IdentityContext.from_claims({"uid": "u-1", "sub": "ignored"}, identity_claim="uid")
    assert ctx.identity_id == "u-1"


def test_from_claims_without_identity_claim():
    with pytest.raises(AuthenticationError):
        IdentityContext.from_claims({"email": "nobody@example.com"})


def test_token_round_trip_carries_extra_claims():
    token = SecurityUtils.create_identity_token("alice", SECRET, extra_claims={"email": "alice@example.com"})
    payload = SecurityUtils.decode_identity_token(token, SECRET)
    assert payload["sub"] == "alice"
    assert payload["email"] == "alice@example.com"


def test_expired_token_is_rejected():
    token = SecurityUtils.create_identity_token("alice", SECRET, expires_delta=timedelta(seconds=-5))
    with pytest.raises(ValueError, match="expired"):
        SecurityUtils.decode_identity_token(token, SECRET)


def test_wrong_secret_is_rejected():
    token = SecurityUtils.create_identity_token("alice", SECRET)
    with pytest.raises(ValueError, match="Invalid token"):
        SecurityUtils.decode_identity_token(token, SECRET + "-other")


def test_audience_is_checked_when_configured():
    token = SecurityUtils.create_identity_token("alice", SECRET, audience="stratum")
    assert SecurityUtils.decode_identity_token(token, SECRET, audience="stratum")["sub"] == "alice"
    with pytest.raises(ValueError):
        SecurityUtils.decode_identity_token(token, SECRET, audience="someone-else")
