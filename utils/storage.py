"""Secure refresh-token storage backed by the system keyring"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

import settings
from errors import CredentialStoreError, NoStoredCredentialError
from utils.paths import legacy_token_path

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Single-slot secret persistence for the session credential"""

    # Plaintext file left by older releases, migrated into the store on first use
    legacy_path: Optional[Path] = None

    @abstractmethod
    def put(self, secret: str) -> None:
        """Store the secret, replacing any previous value"""

    @abstractmethod
    def get(self) -> str:
        """Return the stored secret

        Raises:
            NoStoredCredentialError: if nothing is stored
            CredentialStoreError: if the backend fails
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove the secret. Clearing an empty store is not an error."""


class KeyringCredentialStore(CredentialStore):
    """Refresh token stored in the OS secret vault (Keychain, Secret Service, Credential Locker)"""

    def __init__(
        self,
        service: Optional[str] = None,
        account: Optional[str] = None,
        legacy_path: Optional[Path] = None,
    ):
        self.service = service or settings.KEYRING_SERVICE
        self.account = account or settings.KEYRING_ACCOUNT
        self.legacy_path = Path(legacy_path) if legacy_path else legacy_token_path()

    def put(self, secret: str) -> None:
        try:
            keyring.set_password(self.service, self.account, secret)
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to store refresh token in keyring: {e}") from e
        logger.debug(f"[STORE] Secret stored for service: {self.service}, account: {self.account}")

    def get(self) -> str:
        try:
            secret = keyring.get_password(self.service, self.account)
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to access system keyring: {e}") from e

        if not secret:
            raise NoStoredCredentialError("No credentials found.")
        return secret

    def clear(self) -> None:
        logger.debug("[STORE] Clearing keychain entry...")
        try:
            keyring.delete_password(self.service, self.account)
            logger.info("[STORE] Keyring credential deleted successfully")
        except PasswordDeleteError as e:
            # Backends raise the same error for "not found" and real failures
            if self._entry_exists():
                raise CredentialStoreError(f"Failed to clear keyring: {e}") from e
            logger.debug("[STORE] No existing keyring entry to delete")
        except KeyringError as e:
            raise CredentialStoreError(f"Failed to clear keyring: {e}") from e

        # Also clear legacy file if it exists
        try:
            if self.legacy_path.exists():
                self.legacy_path.unlink()
                logger.info("[STORE] Removed legacy token file")
        except OSError as e:
            logger.warning(f"[STORE] Could not remove legacy token file {self.legacy_path}: {e}")

    def _entry_exists(self) -> bool:
        try:
            return keyring.get_password(self.service, self.account) is not None
        except KeyringError:
            return True


def migrate_legacy_token(store: CredentialStore, legacy_path: Optional[Path] = None) -> bool:
    """Move a plaintext refresh token from the legacy file into the store

    Failures are logged and swallowed so they never block a session.

    Args:
        store: Destination credential store
        legacy_path: Legacy token file (default: the store's legacy_path, else
            <project root>/cli/.o365_cli_token)

    Returns:
        True if a token was migrated, False otherwise
    """
    path = Path(legacy_path or store.legacy_path or legacy_token_path())

    try:
        if not path.exists():
            return False

        token = path.read_text().strip()
        if not token:
            path.unlink()
            logger.info(f"[STORE] Removed empty legacy token file {path}")
            return False

        store.put(token)
        path.unlink()
        logger.info("[STORE] Successfully migrated token from file to keyring")
        return True

    except (OSError, ValueError, CredentialStoreError) as e:
        logger.warning(f"[STORE] Legacy token migration failed: {e}")
        return False
