"""Admin account password hashes.

New hashes are Argon2id. Accounts carried over with bcrypt hashes still
log in, and their hash is replaced with an Argon2id one when they do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

_hasher = PasswordHasher(type=Type.ID)


@dataclass(frozen=True)
class VerifyResult:
    ok: bool
    # Set when the stored hash should be replaced after a successful check.
    upgraded_hash: str | None = None


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def _check_argon2(password: str, passhash: str) -> VerifyResult:
    try:
        _hasher.verify(passhash, password)
    except (VerificationError, InvalidHashError):
        return VerifyResult(ok=False)
    rehash = hash_password(password) if _hasher.check_needs_rehash(passhash) else None
    return VerifyResult(ok=True, upgraded_hash=rehash)


def _check_bcrypt(password: str, passhash: str) -> VerifyResult:
    try:
        ok = bcrypt.checkpw(password.encode("utf-8"), passhash.encode("utf-8"))
    except ValueError:
        return VerifyResult(ok=False)
    return VerifyResult(ok=True, upgraded_hash=hash_password(password)) if ok else VerifyResult(ok=False)


# Hash prefix -> checker. bcrypt covers $2a$, $2b$ and $2y$.
_SCHEMES: dict[str, Callable[[str, str], VerifyResult]] = {
    "$argon2": _check_argon2,
    "$2": _check_bcrypt,
}


def verify_password_with_upgrade(password: str, passhash: str | None) -> VerifyResult:
    """Check a password against a stored hash of any supported scheme."""
    for prefix, check in _SCHEMES.items():
        if passhash and passhash.startswith(prefix):
            return check(password, passhash)
    return VerifyResult(ok=False)


def verify_password(password: str, passhash: str | None) -> bool:
    return verify_password_with_upgrade(password, passhash).ok
