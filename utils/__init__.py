"""Shared utilities package for o365-cli"""

from .storage import CredentialStore, KeyringCredentialStore, migrate_legacy_token
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_logging,
)

__all__ = [
    "CredentialStore",
    "KeyringCredentialStore",
    "migrate_legacy_token",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_logging",
]
