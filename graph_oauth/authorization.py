"""
OAuth authorization flow with PKCE for Microsoft Entra ID
"""
import base64
import hashlib
import secrets
from typing import NamedTuple
from urllib.parse import urlencode

from .constants import SCOPE, authorize_url


class PKCEPair(NamedTuple):
    """PKCE code verifier and challenge pair"""
    verifier: str
    challenge: str


class AuthorizationFlow(NamedTuple):
    """Per-attempt exchange state. Never persisted."""
    pkce: PKCEPair
    state: str
    redirect_uri: str
    url: str


def code_challenge(verifier: str) -> str:
    """
    Derive the S256 code challenge for a verifier.

    SHA-256 of the ASCII verifier, base64url encoded without padding (RFC 7636).
    """
    digest = hashlib.sha256(verifier.encode('ascii')).digest()
    return base64.urlsafe_b64encode(digest).decode('ascii').rstrip('=')


def generate_pkce() -> PKCEPair:
    """
    Generate PKCE code verifier and challenge.

    RFC 7636 PKCE standard:
    - Verifier: 43-128 characters, base64url encoded (32 bytes -> 43 chars)
    - Challenge: SHA-256 hash of verifier, base64url encoded

    Returns:
        PKCEPair: Tuple of (verifier, challenge)
    """
    verifier = secrets.token_urlsafe(32)
    return PKCEPair(verifier=verifier, challenge=code_challenge(verifier))


def create_state() -> str:
    """
    Generate random state parameter for CSRF protection.

    Returns:
        str: 32-byte random state string
    """
    return secrets.token_urlsafe(32)


def create_authorization_flow(client_id: str, tenant: str, redirect_uri: str) -> AuthorizationFlow:
    """
    Create the authorization request for one login attempt.

    Args:
        client_id: Public client ID registered with the identity provider
        tenant: Tenant ID or "common"
        redirect_uri: Loopback redirect bound for this attempt

    Returns:
        AuthorizationFlow with fresh PKCE pair, state and authorization URL
    """
    pkce = generate_pkce()
    state = create_state()

    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": SCOPE,
        "state": state,
        "code_challenge": pkce.challenge,
        "code_challenge_method": "S256",
    }

    url = f"{authorize_url(tenant)}?{urlencode(params)}"

    return AuthorizationFlow(pkce=pkce, state=state, redirect_uri=redirect_uri, url=url)
