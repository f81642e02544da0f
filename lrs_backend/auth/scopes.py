"""Scope codec: wire tokens <-> internal scope identifiers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class Scope(Enum):
    ALL = "all"
    ALL_READ = "all.read"
    STATEMENTS_READ = "statements.read"
    STATEMENTS_READ_MINE = "statements.read.mine"
    STATEMENTS_WRITE = "statements.write"
    STATE = "state"
    DEFINE = "define"
    PROFILE = "profile"


_TOKEN_TO_SCOPE: dict[str, Scope] = {
    "all": Scope.ALL,
    "all/read": Scope.ALL_READ,
    "statements/read": Scope.STATEMENTS_READ,
    "statements/read/mine": Scope.STATEMENTS_READ_MINE,
    "statements/write": Scope.STATEMENTS_WRITE,
    "state": Scope.STATE,
    "define": Scope.DEFINE,
    "profile": Scope.PROFILE,
}

_SCOPE_TO_TOKEN: dict[Scope, str] = {scope: token for token, scope in _TOKEN_TO_SCOPE.items()}

# Applied when a credential exists but has no scope rows.
DEFAULT_SCOPES: frozenset[Scope] = frozenset({Scope.STATEMENTS_WRITE, Scope.STATEMENTS_READ_MINE})


class ScopeDecodeError(ValueError):
    """Raised for a scope token with no known identifier."""

    def __init__(self, token: object):
        self.token = token
        super().__init__(f"Unknown scope: {token!r}")


def decode_scope(token: str) -> Scope:
    try:
        return _TOKEN_TO_SCOPE[token]
    except (KeyError, TypeError):
        raise ScopeDecodeError(token) from None


def encode_scope(scope: Scope) -> str:
    return _SCOPE_TO_TOKEN[scope]


def decode_scopes(tokens: Iterable[str]) -> frozenset[Scope]:
    """Decode every token; a single unknown token fails the whole set."""
    return frozenset(decode_scope(token) for token in tokens)


def validate_scope_tokens(tokens: Iterable[str]) -> frozenset[str]:
    """Return the tokens as a set after checking each one decodes."""
    tokens = frozenset(tokens)
    decode_scopes(tokens)
    return tokens
