"""Reconcile a credential's stored scope rows against a desired scope set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..auth.credentials import KeyPair
from ..repositories.credential_repo import CredentialScopeStore


@dataclass(frozen=True)
class ScopeDelta:
    to_add: frozenset[str]
    to_remove: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff_scopes(current: Iterable[str], desired: Iterable[str]) -> ScopeDelta:
    current = frozenset(current)
    desired = frozenset(desired)
    return ScopeDelta(to_add=desired - current, to_remove=current - desired)


async def sync_credential_scopes(
    store: CredentialScopeStore, key_pair: KeyPair, desired: Iterable[str]
) -> ScopeDelta:
    """Write only the difference between stored and desired scopes.

    Null placeholder rows are not scopes and never appear in the delta. An
    empty desired set removes every stored scope, which puts the credential
    back on the default scopes.
    """
    stored = await store.get_scopes(key_pair) or []
    current = frozenset(scope for scope in stored if scope is not None)
    delta = diff_scopes(current, desired)
    if delta.to_add:
        await store.insert_scopes(key_pair, sorted(delta.to_add))
    if delta.to_remove:
        await store.delete_scopes(key_pair, sorted(delta.to_remove))
    return delta
