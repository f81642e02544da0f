"""Admin account repository."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import AdminAccount, Credential
from ..db.types import GUID
from ..errors import ExistingAccountError
from .credential_repo import SQLAlchemyCredentialRepository


@runtime_checkable
class AdminAccountRepository(Protocol):
    async def get_by_id(self, id: str) -> AdminAccount | None: ...
    async def get_by_username(self, username: str) -> AdminAccount | None: ...
    async def create(self, username: str, passhash: str) -> AdminAccount: ...
    async def update_passhash(self, account: AdminAccount, passhash: str) -> None: ...
    async def delete(self, id: str) -> bool: ...


class SQLAlchemyAdminAccountRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, id: str) -> AdminAccount | None:
        return await self._session.get(AdminAccount, id)

    async def get_by_username(self, username: str) -> AdminAccount | None:
        result = await self._session.execute(
            select(AdminAccount).where(AdminAccount.username == username)
        )
        return result.scalar_one_or_none()

    async def create(self, username: str, passhash: str) -> AdminAccount:
        account = AdminAccount(id=GUID.new(), username=username, passhash=passhash)
        self._session.add(account)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ExistingAccountError(username) from exc
        return account

    async def update_passhash(self, account: AdminAccount, passhash: str) -> None:
        account.passhash = passhash
        await self._session.flush()

    async def delete(self, id: str) -> bool:
        """Delete the account together with its credentials and their scopes."""
        account = await self.get_by_id(id)
        if not account:
            return False
        credentials = SQLAlchemyCredentialRepository(self._session)
        result = await self._session.execute(select(Credential).where(Credential.account_id == id))
        for credential in result.scalars().all():
            await credentials.delete(credential)
        await self._session.delete(account)
        await self._session.flush()
        return True
