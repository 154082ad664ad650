"""
Microsoft Entra ID OAuth authentication module
"""
from .constants import (
    CALLBACK_HOST,
    REDIRECT_HOST,
    SCOPE,
    authorize_url,
    token_url,
    redirect_uri_for_port,
    resolve_client_id,
)
from .authorization import (
    PKCEPair,
    AuthorizationFlow,
    code_challenge,
    generate_pkce,
    create_state,
    create_authorization_flow,
)
from .token_exchange import (
    TokenResponse,
    exchange_code_for_tokens,
    refresh_access_token,
)
from .callback_server import (
    CallbackResult,
    CallbackListener,
    parse_callback,
)
from .session import LoginState, SessionManager, SessionStatus

__all__ = [
    # Constants
    "CALLBACK_HOST",
    "REDIRECT_HOST",
    "SCOPE",
    "authorize_url",
    "token_url",
    "redirect_uri_for_port",
    "resolve_client_id",
    # Authorization
    "PKCEPair",
    "AuthorizationFlow",
    "code_challenge",
    "generate_pkce",
    "create_state",
    "create_authorization_flow",
    # Token Exchange
    "TokenResponse",
    "exchange_code_for_tokens",
    "refresh_access_token",
    # Callback Listener
    "CallbackResult",
    "CallbackListener",
    "parse_callback",
    # Session
    "LoginState",
    "SessionManager",
    "SessionStatus",
]
