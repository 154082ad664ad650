"""
Loopback OAuth callback listener

Serves 127.0.0.1 on an OS-assigned port with http.server and handles one
request at a time until the browser delivers the OAuth redirect.
"""
import logging
import secrets
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import NamedTuple, Optional
from urllib.parse import parse_qs, urlsplit

from errors import (
    AuthError,
    CsrfMismatchError,
    FaviconRequestError,
    ListenerError,
    MissingAuthorizationCodeError,
)
from .constants import (
    CALLBACK_FAILURE_MESSAGE,
    CALLBACK_HOST,
    CALLBACK_SUCCESS_MESSAGE,
    FAVICON_PATH,
    redirect_uri_for_port,
)

logger = logging.getLogger(__name__)

# Longest single wait inside handle_request(); bounds how late close() is noticed
POLL_INTERVAL = 0.5
# Per-connection read timeout, so an idle preconnect cannot stall the listener
REQUEST_READ_TIMEOUT = 5.0


class CallbackResult(NamedTuple):
    """OAuth callback result"""
    code: str
    state: str


def parse_request_target(request_line: str) -> str:
    """Extract the target from "GET /?code=... HTTP/1.1" (defaults to "/")"""
    parts = request_line.split()
    if len(parts) < 2:
        return "/"
    return parts[1]


def parse_callback(request_line: str, expected_state: str) -> CallbackResult:
    """
    Validate the redirect request and extract the authorization code.

    Args:
        request_line: First line of the HTTP request sent by the browser
        expected_state: CSRF token generated for this login attempt

    Returns:
        CallbackResult with code and state

    Raises:
        FaviconRequestError: the request is the browser's favicon probe
        CsrfMismatchError: state missing or different from expected_state
        MissingAuthorizationCodeError: no code (or a provider error) in the redirect
    """
    target = parse_request_target(request_line)
    parts = urlsplit(target)

    if FAVICON_PATH in parts.path:
        raise FaviconRequestError("Browser requested favicon.ico instead of the OAuth callback")

    params = parse_qs(parts.query, keep_blank_values=True)

    # Validate CSRF state parameter before looking at anything else
    state = params.get("state", [None])[0]
    if state is None or not secrets.compare_digest(state.encode("utf-8"), expected_state.encode("utf-8")):
        logger.error("[AUTH] CSRF validation failed - state mismatch")
        raise CsrfMismatchError("CSRF validation failed: state mismatch in OAuth callback.")
    logger.info("[AUTH] CSRF validation passed")

    error = params.get("error", [None])[0]
    if error:
        message = f"Authorization was not granted ({error})"
        description = params.get("error_description", [""])[0]
        if description:
            message = f"{message}: {description}"
        raise MissingAuthorizationCodeError(message)

    code = params.get("code", [""])[0]
    if not code:
        raise MissingAuthorizationCodeError(
            f"Failed to retrieve authorization code from callback. Received: {parts.path or '/'}"
        )

    return CallbackResult(code=code, state=state)


class _CallbackServer(HTTPServer):
    """HTTPServer carrying the expected state and the outcome of the redirect"""

    def __init__(self, server_address, expected_state: str = ""):
        super().__init__(server_address, _CallbackHandler)
        self.expected_state = expected_state
        self.result: Optional[CallbackResult] = None
        self.failure: Optional[AuthError] = None

    def handle_error(self, request, client_address):
        logger.debug(f"[AUTH] Error while handling callback connection from {client_address}", exc_info=True)


class _CallbackHandler(BaseHTTPRequestHandler):
    """Answers the browser and records the redirect outcome on the server"""

    protocol_version = "HTTP/1.1"
    timeout = REQUEST_READ_TIMEOUT

    def do_GET(self):
        logger.debug(f"[AUTH] Received HTTP request: {self.requestline.split('?')[0]}")
        try:
            result = parse_callback(self.requestline, self.server.expected_state)
        except FaviconRequestError:
            logger.debug("[AUTH] Ignoring favicon request, waiting for the real callback")
            self._respond(404, "Not Found")
            return
        except (CsrfMismatchError, MissingAuthorizationCodeError) as e:
            self.server.failure = e
            self._respond(400, CALLBACK_FAILURE_MESSAGE)
            return

        try:
            self._respond(200, CALLBACK_SUCCESS_MESSAGE)
        except OSError as e:
            self.server.failure = ListenerError(f"Failed to send response to browser: {e}")
            return
        logger.info("[AUTH] Sent success response to browser")
        self.server.result = result

    def _respond(self, status: int, message: str) -> None:
        body = message.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """Route http.server access logs to the debug log instead of stderr"""
        logger.debug(f"[AUTH] Callback server: {format % args}")


class CallbackListener:
    """One-shot loopback listener for the OAuth redirect"""

    def __init__(self, host: str = CALLBACK_HOST, timeout: Optional[float] = None):
        """
        Args:
            host: Loopback address to bind
            timeout: Seconds to wait for the callback; None waits forever
        """
        self.host = host
        self.timeout = timeout or None
        self._server: Optional[_CallbackServer] = None
        self._closed = False

    def __enter__(self) -> "CallbackListener":
        self.bind()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def bind(self) -> int:
        """Bind an ephemeral port and start listening. Returns the port."""
        try:
            self._server = _CallbackServer((self.host, 0))
        except OSError as e:
            raise ListenerError(f"Failed to bind OAuth callback listener on {self.host}: {e}") from e

        logger.info(f"[AUTH] Callback listener bound on {self.host}:{self.port}")
        return self.port

    @property
    def port(self) -> int:
        if self._server is None:
            raise ListenerError("Callback listener is not bound")
        return self._server.server_address[1]

    @property
    def redirect_uri(self) -> str:
        return redirect_uri_for_port(self.port)

    def close(self) -> None:
        """Stop listening. A wait in progress on another thread fails with ListenerError."""
        self._closed = True
        if self._server is not None:
            self._server.server_close()

    def wait_for_callback(self, expected_state: str) -> CallbackResult:
        """
        Block until the browser delivers the OAuth redirect.

        Favicon probes are answered with 404 and do not end the wait, and
        connections that close without a request are ignored. A success page
        is written to the browser before returning.

        Args:
            expected_state: CSRF token generated for this login attempt

        Returns:
            CallbackResult with the authorization code
        """
        server = self._server
        if server is None:
            raise ListenerError("Callback listener is not bound")

        server.expected_state = expected_state
        server.result = None
        server.failure = None
        deadline = time.monotonic() + self.timeout if self.timeout else None

        while server.result is None and server.failure is None:
            if self._closed:
                raise ListenerError("OAuth callback wait was cancelled.")

            server.timeout = POLL_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ListenerError(f"Timed out after {self.timeout}s waiting for the OAuth callback.")
                server.timeout = min(POLL_INTERVAL, remaining)

            try:
                server.handle_request()
            except (OSError, ValueError) as e:
                # ValueError: the socket was closed under select()
                if self._closed:
                    raise ListenerError("OAuth callback wait was cancelled.") from e
                raise ListenerError(f"Failed to accept OAuth callback connection: {e}") from e

        if server.failure is not None:
            raise server.failure
        return server.result
