"""Credential, scope and password handling."""

from lrs_backend.auth.authorize import authorize_action, reads_only_own_statements
from lrs_backend.auth.credentials import (
    ApiKeyScopes,
    AuthIdentity,
    KeyPair,
    generate_key_pair,
    header_to_key_pair,
)
from lrs_backend.auth.scopes import (
    DEFAULT_SCOPES,
    Scope,
    ScopeDecodeError,
    decode_scope,
    decode_scopes,
    encode_scope,
)

__all__ = [
    "ApiKeyScopes",
    "AuthIdentity",
    "DEFAULT_SCOPES",
    "KeyPair",
    "Scope",
    "ScopeDecodeError",
    "authorize_action",
    "decode_scope",
    "decode_scopes",
    "encode_scope",
    "generate_key_pair",
    "header_to_key_pair",
    "reads_only_own_statements",
]
