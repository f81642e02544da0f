"""Credential and credential-scope repository."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.credentials import KeyPair
from ..db.models import Credential, CredentialScope
from ..db.types import GUID


@runtime_checkable
class CredentialScopeStore(Protocol):
    async def get_scopes(self, key_pair: KeyPair) -> list[str | None] | None: ...
    async def insert_scopes(self, key_pair: KeyPair, scopes: Iterable[str]) -> None: ...
    async def delete_scopes(self, key_pair: KeyPair, scopes: Iterable[str]) -> None: ...


@runtime_checkable
class CredentialRepository(CredentialScopeStore, Protocol):
    async def get(self, key_pair: KeyPair, account_id: str | None = None) -> Credential | None: ...
    async def create(self, account_id: str | None, key_pair: KeyPair) -> Credential: ...
    async def delete(self, credential: Credential) -> None: ...
    async def list_for_account(self, account_id: str) -> list[Credential]: ...


def _key_pair_filter(key_pair: KeyPair):
    return (Credential.api_key == key_pair.api_key, Credential.secret_key == key_pair.secret_key)


class SQLAlchemyCredentialRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, key_pair: KeyPair, account_id: str | None = None) -> Credential | None:
        query = select(Credential).where(*_key_pair_filter(key_pair))
        if account_id is not None:
            query = query.where(Credential.account_id == account_id)
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def create(self, account_id: str | None, key_pair: KeyPair) -> Credential:
        credential = Credential(
            id=GUID.new(),
            account_id=account_id,
            api_key=key_pair.api_key,
            secret_key=key_pair.secret_key,
        )
        self._session.add(credential)
        await self._session.flush()
        return credential

    async def delete(self, credential: Credential) -> None:
        await self._session.execute(
            delete(CredentialScope).where(CredentialScope.credential_id == credential.id)
        )
        await self._session.delete(credential)
        await self._session.flush()

    async def list_for_account(self, account_id: str) -> list[Credential]:
        result = await self._session.execute(
            select(Credential).where(Credential.account_id == account_id).order_by(Credential.created_at)
        )
        return list(result.scalars().all())

    async def get_scopes(self, key_pair: KeyPair) -> list[str | None] | None:
        """Scope column of every (credential LEFT JOIN scope) row.

        None when no credential matches. A credential without scope rows
        yields ``[None]``.
        """
        result = await self._session.execute(
            select(CredentialScope.scope)
            .select_from(Credential)
            .outerjoin(CredentialScope, CredentialScope.credential_id == Credential.id)
            .where(*_key_pair_filter(key_pair))
        )
        scopes = list(result.scalars().all())
        return scopes or None

    async def insert_scopes(self, key_pair: KeyPair, scopes: Iterable[str]) -> None:
        credential = await self.get(key_pair)
        if credential is None:
            return
        for scope in scopes:
            self._session.add(CredentialScope(credential_id=credential.id, scope=scope))
        await self._session.flush()

    async def delete_scopes(self, key_pair: KeyPair, scopes: Iterable[str]) -> None:
        scopes = list(scopes)
        if not scopes:
            return
        credential_ids = select(Credential.id).where(*_key_pair_filter(key_pair)).scalar_subquery()
        await self._session.execute(
            delete(CredentialScope).where(
                CredentialScope.credential_id == credential_ids,
                CredentialScope.scope.in_(scopes),
            )
        )
