"""Tests for PKCE helpers and the signed OAuth state cookie."""

import base64
import hashlib

import jwt

from portal.core.oauth import (
    OAuthState,
    create_oauth_state_cookie,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
    validate_oauth_state_cookie,
)

SECRET = "oauth-state-secret-that-is-long-enough"  # nosec B105  # gitleaks:allow


def _state(**overrides) -> OAuthState:
    values = {"state": "state-1", "code_verifier": "v" * 64, "provider": "google"}
    values.update(overrides)
    return OAuthState(**values)


# =============================================================================
# PKCE
# =============================================================================


def test_code_verifier_uses_unreserved_characters():
    verifier = generate_code_verifier()

    assert len(verifier) == 128
    assert set(verifier) <= set(
        "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
    )


def test_code_challenge_is_unpadded_sha256():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest())

    challenge = generate_code_challenge(verifier)

    assert challenge == expected.rstrip(b"=").decode()
    # RFC 7636 appendix B
    assert challenge == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_states_are_unique():
    assert generate_state() != generate_state()


# =============================================================================
# State cookie
# =============================================================================


def test_state_cookie_round_trip():
    cookie = create_oauth_state_cookie(_state(), secret=SECRET)

    result = validate_oauth_state_cookie(
        cookie_value=cookie, expected_state="state-1", secret=SECRET
    )

    assert result == _state()


def test_state_mismatch_rejected():
    cookie = create_oauth_state_cookie(_state(), secret=SECRET)

    assert (
        validate_oauth_state_cookie(cookie_value=cookie, expected_state="other", secret=SECRET)
        is None
    )


def test_wrong_secret_rejected():
    cookie = create_oauth_state_cookie(_state(), secret=SECRET)

    assert (
        validate_oauth_state_cookie(
            cookie_value=cookie, expected_state="state-1", secret=SECRET + "x"
        )
        is None
    )


def test_expired_cookie_rejected():
    cookie = create_oauth_state_cookie(_state(), secret=SECRET, ttl_seconds=-10)

    assert (
        validate_oauth_state_cookie(cookie_value=cookie, expected_state="state-1", secret=SECRET)
        is None
    )


def test_cookie_without_verifier_rejected():
    cookie = jwt.encode({"state": "state-1", "provider": "google"}, SECRET, algorithm="HS256")

    assert (
        validate_oauth_state_cookie(cookie_value=cookie, expected_state="state-1", secret=SECRET)
        is None
    )


def test_garbage_cookie_rejected():
    assert (
        validate_oauth_state_cookie(
            cookie_value="not-a-jwt", expected_state="state-1", secret=SECRET
        )
        is None
    )
