"""
OAuth token endpoint calls: authorization-code and refresh-token grants
"""
import logging
from typing import Any, Dict, Optional

import httpx

import settings
from errors import TokenExchangeError

logger = logging.getLogger(__name__)


class TokenResponse:
    """OAuth token response"""

    def __init__(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_in: int = 3600,
        token_type: str = "Bearer",
        scope: Optional[str] = None,
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_in = expires_in
        self.token_type = token_type
        self.scope = scope

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenResponse":
        """Build from the token endpoint's JSON body"""
        access_token = data.get("access_token")
        if not access_token:
            raise TokenExchangeError("Token endpoint response did not include an access token.")
        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError) as e:
            raise TokenExchangeError(
                f"Token endpoint returned an invalid expires_in: {data.get('expires_in')!r}"
            ) from e
        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expires_in=expires_in,
            token_type=data.get("token_type", "Bearer"),
            scope=data.get("scope"),
        )


def _describe_failure(response: httpx.Response) -> str:
    """Prefer the provider's error_description over the raw body"""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        description = body.get("error_description") or body.get("error")
        if description:
            return str(description).splitlines()[0]
    return response.text[:500]


def _post_token_request(
    token_url: str,
    data: Dict[str, str],
    client: Optional[httpx.Client],
    action: str,
) -> TokenResponse:
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.TOKEN_REQUEST_TIMEOUT)

    try:
        response = client.post(
            token_url,
            data=data,
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as e:
        logger.error(f"[AUTH] {action} request failed: {e}")
        raise TokenExchangeError(f"{action} request failed: {e}") from e
    finally:
        if owns_client:
            client.close()

    if response.status_code != 200:
        detail = _describe_failure(response)
        logger.error(f"[AUTH] {action} failed with status {response.status_code}: {detail}")
        raise TokenExchangeError(
            f"{action} failed (HTTP {response.status_code}): {detail}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise TokenExchangeError(f"{action} returned a malformed response: {e}") from e
    if not isinstance(payload, dict):
        raise TokenExchangeError(f"{action} returned an unexpected response body.")

    return TokenResponse.from_dict(payload)


def exchange_code_for_tokens(
    token_url: str,
    client_id: str,
    code: str,
    code_verifier: str,
    redirect_uri: str,
    client: Optional[httpx.Client] = None,
) -> TokenResponse:
    """
    Exchange authorization code for access and refresh tokens.

    Args:
        token_url: Tenant token endpoint
        client_id: Public client ID
        code: Authorization code from the callback
        code_verifier: PKCE code verifier for this attempt
        redirect_uri: Redirect URI used in the authorization request
        client: Optional httpx client (a short-lived one is created otherwise)

    Returns:
        TokenResponse

    Raises:
        TokenExchangeError: network failure or provider rejection
    """
    return _post_token_request(
        token_url,
        {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "code": code,
            "code_verifier": code_verifier,
            "redirect_uri": redirect_uri,
        },
        client,
        "Token exchange",
    )


def refresh_access_token(
    token_url: str,
    client_id: str,
    refresh_token: str,
    client: Optional[httpx.Client] = None,
) -> TokenResponse:
    """
    Exchange a refresh token for a new access token.

    The provider may rotate the refresh token; TokenResponse.refresh_token
    is None when it did not.

    Raises:
        TokenExchangeError: network failure or provider rejection
    """
    return _post_token_request(
        token_url,
        {
            "grant_type": "refresh_token",
            "client_id": client_id,
            "refresh_token": refresh_token,
        },
        client,
        "Token refresh",
    )
