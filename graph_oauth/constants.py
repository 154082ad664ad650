"""
Microsoft Entra ID OAuth constants
"""
import settings

# Loopback callback listener
CALLBACK_HOST = "127.0.0.1"
REDIRECT_HOST = "localhost"
FAVICON_PATH = "favicon.ico"

# Delegated scopes: profile read, directory read/write, offline access (refresh token)
SCOPE = " ".join(settings.SCOPES)

CALLBACK_SUCCESS_MESSAGE = "Login Successful! You can close this window and return to the terminal."
CALLBACK_FAILURE_MESSAGE = "Login Failed! Return to the terminal for details."


def resolve_client_id() -> str:
    """Client ID from the environment override, or the built-in public client"""
    return settings.config.get(settings.CLIENT_ID_ENV_VAR, settings.DEFAULT_CLIENT_ID)


def authorize_url(tenant: str) -> str:
    return f"{settings.AUTHORITY_HOST}/{tenant}/oauth2/v2.0/authorize"


def token_url(tenant: str) -> str:
    return f"{settings.AUTHORITY_HOST}/{tenant}/oauth2/v2.0/token"


def redirect_uri_for_port(port: int) -> str:
    return f"http://{REDIRECT_HOST}:{port}"
