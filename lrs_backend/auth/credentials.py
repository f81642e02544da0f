"""API key pairs and the per-request auth identity."""

from __future__ import annotations

import base64
import binascii
import secrets
from dataclasses import dataclass, field

from lrs_backend.auth.scopes import Scope


@dataclass(frozen=True)
class KeyPair:
    api_key: str
    secret_key: str


@dataclass(frozen=True)
class AuthIdentity:
    """Resolved credential for one request. Never persisted."""

    scopes: frozenset[Scope]
    auth: KeyPair
    prefix: str = ""

    @property
    def username(self) -> str:
        return self.auth.api_key


@dataclass(frozen=True)
class ApiKeyScopes:
    """A key pair together with its stored scope tokens."""

    api_key: str
    secret_key: str
    scopes: frozenset[str] = field(default_factory=frozenset)


def generate_key_pair() -> KeyPair:
    """Generate an API key and secret key, 32 random bytes each, hex encoded."""
    return KeyPair(api_key=secrets.token_hex(32), secret_key=secrets.token_hex(32))


def header_to_key_pair(header: str | None) -> KeyPair | None:
    """Decode an HTTP Basic ``Authorization`` header.

    Returns None when the header is absent, not Basic, or malformed.
    """
    if not header:
        return None
    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    api_key, sep, secret_key = decoded.partition(":")
    if not sep or not api_key or not secret_key:
        return None
    return KeyPair(api_key=api_key, secret_key=secret_key)


def key_pair_to_header(key_pair: KeyPair) -> str:
    raw = f"{key_pair.api_key}:{key_pair.secret_key}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")
