"""OAuth sign-in utilities: PKCE and the signed state cookie.

The identity service runs the provider dance (Google consent screen, token
exchange with Google). The portal only starts the flow with a PKCE code
challenge and later trades the returned auth code, plus the verifier, for a
session. Between the two requests the verifier and a random CSRF state
travel in a short-lived cookie signed with HS256.
"""

import base64
import hashlib
import secrets
import time
from dataclasses import dataclass

import jwt

# PKCE code verifier length (RFC 7636 allows 43-128)
_VERIFIER_LENGTH = 128

# unreserved = ALPHA / DIGIT / "-" / "." / "_" / "~"  (RFC 7636 §4.1)
_UNRESERVED_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_TTL = 600


@dataclass(frozen=True)
class OAuthState:
    """What the callback needs from the initiating request."""

    state: str
    code_verifier: str
    provider: str


def generate_code_verifier() -> str:
    """Random 128-character PKCE code verifier."""
    return "".join(secrets.choice(_UNRESERVED_CHARS) for _ in range(_VERIFIER_LENGTH))


def generate_code_challenge(verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding (RFC 7636 §4.2)."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    return secrets.token_urlsafe(32)


def create_oauth_state_cookie(
    oauth_state: OAuthState,
    *,
    secret: str,
    ttl_seconds: int = OAUTH_STATE_TTL,
) -> str:
    """Sign the state, verifier and provider into a cookie value.

    Args:
        oauth_state: Values generated when the flow started.
        secret: HMAC signing secret.
        ttl_seconds: Lifetime of the cookie value.

    Returns:
        Signed JWT string.
    """
    payload = {
        "state": oauth_state.state,
        "code_verifier": oauth_state.code_verifier,
        "provider": oauth_state.provider,
        "exp": int(time.time()) + ttl_seconds,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def validate_oauth_state_cookie(
    *,
    cookie_value: str,
    expected_state: str,
    secret: str,
) -> OAuthState | None:
    """Check signature, expiry and state match.

    Returns:
        The decoded OAuthState, or None if any check fails.
    """
    try:
        payload = jwt.decode(cookie_value, secret, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return None

    state = payload.get("state")
    if not state or not secrets.compare_digest(str(state).encode(), expected_state.encode()):
        return None

    verifier = payload.get("code_verifier")
    provider = payload.get("provider")
    if not verifier or not provider:
        return None
    return OAuthState(state=str(state), code_verifier=str(verifier), provider=str(provider))
