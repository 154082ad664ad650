"""Shared fixtures: in-memory keyring, isolated working directory, fake JWTs."""
import base64
import json
import socket
from typing import Dict, Optional, Tuple

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps secrets in a dict"""

    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords: Dict[Tuple[str, str], str] = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found")


class BrokenKeyring(KeyringBackend):
    """Keyring backend whose vault is locked"""

    priority = 1

    def get_password(self, service, username):
        raise KeyringError("vault locked")

    def set_password(self, service, username, password):
        raise KeyringError("vault locked")

    def delete_password(self, service, username):
        raise KeyringError("vault locked")


@pytest.fixture(autouse=True)
def memory_keyring():
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend


@pytest.fixture
def broken_keyring():
    backend = BrokenKeyring()
    keyring.set_keyring(backend)
    yield backend


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    """Run every test from an empty project root"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("AZURE_CLIENT_ID", raising=False)
    return tmp_path


def make_jwt(claims: dict) -> str:
    def encode(part: dict) -> str:
        raw = json.dumps(part).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    return f"{encode({'alg': 'none', 'typ': 'JWT'})}.{encode(claims)}.signature"


def http_get(port: int, target: str, timeout: float = 5.0) -> Optional[bytes]:
    """Send a minimal browser-like GET to the loopback listener and return the raw response"""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        request = (
            f"GET {target} HTTP/1.1\r\n"
            f"Host: localhost:{port}\r\n"
            "User-Agent: pytest\r\n"
            "\r\n"
        )
        sock.sendall(request.encode("ascii"))
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)
