"""Error taxonomy for the authentication and task runner layers"""

from typing import Optional


LOGIN_HINT = "Please run `o365-cli login` to sign in again."


class AdminCLIError(Exception):
    """Base class for every error surfaced to the presentation layer"""


# Authentication / session
class AuthError(AdminCLIError):
    """Authentication failure. The rendered message always tells the operator to log in again."""

    def __str__(self) -> str:
        base = super().__str__()
        if not base:
            return LOGIN_HINT
        return f"{base} {LOGIN_HINT}"


class ListenerError(AuthError):
    """The loopback callback listener could not bind, accept or read"""


class FaviconRequestError(ListenerError):
    """The browser asked for /favicon.ico instead of the OAuth redirect.

    Retryable: the listener answers it and keeps waiting for the real callback.
    """


class CsrfMismatchError(AuthError):
    """The callback's state parameter is missing or does not match the generated token"""


class MissingAuthorizationCodeError(AuthError):
    """The callback did not carry an authorization code"""


class TokenExchangeError(AuthError):
    """The token endpoint rejected the request or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MissingOfflineAccessError(AuthError):
    """The provider returned no refresh token (offline_access was not consented)"""


class CredentialStoreError(AuthError):
    """The system secret vault is unavailable or denied access"""


class NoStoredCredentialError(AuthError):
    """No session credential is stored (never logged in, or cleared)"""


# Worker process
class RunnerError(AdminCLIError):
    """Base class for worker process failures"""


class WorkerSpawnError(RunnerError):
    """The worker runtime or entry point could not be started"""


class WorkerSecretHandoffError(RunnerError):
    """The access token could not be written to the worker's stdin"""


class WorkerExitError(RunnerError):
    """The worker exited with a non-zero status"""

    def __init__(self, code: Optional[int]):
        super().__init__(f"Worker failed with exit code: {code}")
        self.code = code


class WorkerReportedError(RunnerError):
    """The worker emitted an error message. str() is the worker's own text, unmodified."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
