"""
OAuth session lifecycle: interactive login, silent renewal, logout
"""
import logging
import webbrowser
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import httpx

import settings
from errors import CredentialStoreError, MissingOfflineAccessError, NoStoredCredentialError
from utils.profile import UserProfile
from utils.storage import CredentialStore, migrate_legacy_token

from .authorization import create_authorization_flow
from .callback_server import CallbackListener
from .constants import resolve_client_id, token_url
from .token_exchange import exchange_code_for_tokens, refresh_access_token

logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    """Stages of one interactive login attempt"""
    IDLE = "Idle"
    LISTENER_BOUND = "ListenerBound"
    BROWSER_LAUNCHED = "BrowserLaunched"
    CALLBACK_RECEIVED = "CallbackReceived"
    CODE_EXCHANGED = "CodeExchanged"
    TOKEN_STORED = "TokenStored"
    ABORTED = "Aborted"


@dataclass
class SessionStatus:
    """Offline view of the session for status displays"""
    has_credential: bool
    profile: Optional[UserProfile] = None
    error: Optional[str] = None


class SessionManager:
    """
    Owns the Authorization Code + PKCE exchange and refresh-token renewal.

    The refresh token lives in the credential store. Access tokens are only
    ever returned to the caller, never persisted.
    """

    def __init__(
        self,
        store: CredentialStore,
        tenant: str = "common",
        client_id: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        browser_opener: Callable[[str], bool] = webbrowser.open,
        callback_timeout: Optional[float] = None,
        url_sink: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            store: Credential store holding the refresh token
            tenant: Tenant ID or "common"
            client_id: Public client ID (default: AZURE_CLIENT_ID or the built-in client)
            http_client: httpx client for token requests (tests inject a mocked one)
            browser_opener: Opens the authorization URL, returns False on failure
            callback_timeout: Seconds to wait for the redirect; None or 0 waits forever
            url_sink: Receives the authorization URL so it can be shown for manual use
        """
        self.store = store
        self.tenant = tenant or "common"
        self.client_id = client_id or resolve_client_id()
        self.http_client = http_client
        self.browser_opener = browser_opener
        if callback_timeout is None:
            callback_timeout = settings.OAUTH_CALLBACK_TIMEOUT
        self.callback_timeout = callback_timeout or None
        self.url_sink = url_sink
        self.state = LoginState.IDLE

    @property
    def token_url(self) -> str:
        return token_url(self.tenant)

    def _transition(self, state: LoginState, detail: str = "") -> None:
        self.state = state
        suffix = f" ({detail})" if detail else ""
        logger.info(f"[AUTH] Login state: {state.value}{suffix}")

    def login(self) -> str:
        """
        Run the interactive browser login.

        Returns:
            A fresh access token

        Raises:
            AuthError: any failure along the flow (listener, CSRF, code, exchange, store)
        """
        self._transition(LoginState.IDLE)
        try:
            return self._login()
        except Exception as e:
            self._transition(LoginState.ABORTED, type(e).__name__)
            raise

    def _login(self) -> str:
        # Fresh start: a failed attempt must not leave a stale session behind
        self.store.clear()

        with CallbackListener(timeout=self.callback_timeout) as listener:
            flow = create_authorization_flow(self.client_id, self.tenant, listener.redirect_uri)
            self._transition(LoginState.LISTENER_BOUND, listener.redirect_uri)

            self._open_browser(flow.url)
            self._transition(LoginState.BROWSER_LAUNCHED)

            callback = listener.wait_for_callback(flow.state)
        self._transition(LoginState.CALLBACK_RECEIVED)

        logger.info("[AUTH] Exchanging authorization code for tokens...")
        tokens = exchange_code_for_tokens(
            self.token_url,
            self.client_id,
            callback.code,
            flow.pkce.verifier,
            flow.redirect_uri,
            client=self.http_client,
        )
        self._transition(LoginState.CODE_EXCHANGED)

        if not tokens.refresh_token:
            raise MissingOfflineAccessError(
                "No refresh token returned. Ensure 'offline_access' scope is requested."
            )

        self.store.put(tokens.refresh_token)
        self._transition(LoginState.TOKEN_STORED)
        logger.info(f"[AUTH] Refresh token stored (length: {len(tokens.refresh_token)})")

        self._cache_profile(tokens.access_token)
        return tokens.access_token

    def _open_browser(self, url: str) -> None:
        if self.url_sink is not None:
            self.url_sink(url)

        try:
            opened = self.browser_opener(url)
        except Exception as e:
            logger.warning(f"[AUTH] Failed to open browser: {e}")
            return
        if opened is False:
            logger.warning("[AUTH] Browser could not be opened, waiting for manual navigation")

    def _cache_profile(self, access_token: str) -> None:
        profile = UserProfile.from_access_token(access_token)
        if profile is None:
            logger.debug("[AUTH] Access token is not a JWT, no profile cached")
            return
        try:
            profile.save()
        except OSError as e:
            logger.warning(f"[AUTH] Could not save user profile: {e}")

    def get_access_token(self) -> str:
        """
        Exchange the stored refresh token for an access token.

        Rotated refresh tokens are written back to the store.

        Raises:
            NoStoredCredentialError: no login has happened yet
            CredentialStoreError: the secret vault failed
            TokenExchangeError: the provider rejected the refresh token
        """
        migrate_legacy_token(self.store)

        refresh_token = self.store.get().strip()
        if not refresh_token:
            raise NoStoredCredentialError("No credentials found.")

        logger.debug(f"[AUTH] Refreshing access token (refresh token length: {len(refresh_token)})")
        tokens = refresh_access_token(
            self.token_url,
            self.client_id,
            refresh_token,
            client=self.http_client,
        )

        if tokens.refresh_token and tokens.refresh_token != refresh_token:
            self.store.put(tokens.refresh_token)
            logger.info("[AUTH] Stored rotated refresh token")

        return tokens.access_token

    def logout(self) -> None:
        """Forget the stored credential and the cached profile"""
        self.store.clear()
        try:
            UserProfile.clear()
        except OSError as e:
            logger.warning(f"[AUTH] Could not remove cached profile: {e}")
        logger.info("[AUTH] Logged out")

    def status(self) -> SessionStatus:
        """Report the stored session without contacting the network"""
        migrate_legacy_token(self.store)
        profile = UserProfile.load()
        try:
            self.store.get()
        except NoStoredCredentialError:
            return SessionStatus(has_credential=False, profile=profile)
        except CredentialStoreError as e:
            logger.warning(f"[AUTH] Could not read credential store: {e}")
            return SessionStatus(has_credential=False, profile=profile, error=str(e))
        return SessionStatus(has_credential=True, profile=profile)
