"""Admin account and API key management."""

from __future__ import annotations

from typing import Iterable

from ..auth.credentials import ApiKeyScopes, KeyPair, generate_key_pair
from ..auth.password import hash_password, verify_password_with_upgrade
from ..auth.scopes import ScopeDecodeError, validate_scope_tokens
from ..logging_utils import get_logger
from ..repositories.admin_repo import SQLAlchemyAdminAccountRepository
from ..repositories.credential_repo import SQLAlchemyCredentialRepository
from ..results import Err, ErrorKind, Result
from .base import TransactionalService
from .scope_sync import sync_credential_scopes

logger = get_logger(__name__)


def _checked_scopes(scopes: Iterable[str]) -> frozenset[str] | Err:
    try:
        return validate_scope_tokens(scopes)
    except ScopeDecodeError as exc:
        return Err(ErrorKind.DECODE_ERROR, str(exc))


class AdminService(TransactionalService):
    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    async def create_account(self, username: str, password: str) -> Result[str]:
        """Create an admin account and return its id."""
        passhash = hash_password(password)

        async def body(session):
            accounts = SQLAlchemyAdminAccountRepository(session)
            if await accounts.get_by_username(username) is not None:
                return Err(ErrorKind.EXISTING_ACCOUNT, f"Account {username!r} already exists")
            account = await accounts.create(username, passhash)
            logger.info("Created admin account", data={"account_id": account.id})
            return account.id

        return await self._run("create_account", body)

    async def authenticate_account(self, username: str, password: str) -> Result[str]:
        """Check a username/password pair and return the account id."""

        async def body(session):
            accounts = SQLAlchemyAdminAccountRepository(session)
            account = await accounts.get_by_username(username)
            if account is None:
                return Err(ErrorKind.MISSING_ACCOUNT, f"No account named {username!r}")
            verified = verify_password_with_upgrade(password, account.passhash)
            if not verified.ok:
                return Err(ErrorKind.INVALID_PASSWORD, "Invalid password")
            if verified.upgraded_hash:
                await accounts.update_passhash(account, verified.upgraded_hash)
                logger.info("Upgraded admin password hash", data={"account_id": account.id})
            return account.id

        return await self._run("authenticate_account", body)

    async def delete_account(self, account_id: str) -> Result[str]:
        async def body(session):
            deleted = await SQLAlchemyAdminAccountRepository(session).delete(account_id)
            if deleted:
                logger.info("Deleted admin account", data={"account_id": account_id})
            return account_id

        return await self._run("delete_account", body)

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------
    async def create_api_keys(self, account_id: str, scopes: Iterable[str]) -> Result[ApiKeyScopes]:
        """Generate a key pair for the account and store its scopes."""
        checked = _checked_scopes(scopes)
        if isinstance(checked, Err):
            return checked
        key_pair = generate_key_pair()

        async def body(session):
            credentials = SQLAlchemyCredentialRepository(session)
            await credentials.create(account_id, key_pair)
            await credentials.insert_scopes(key_pair, sorted(checked))
            return ApiKeyScopes(key_pair.api_key, key_pair.secret_key, checked)

        return await self._run("create_api_keys", body)

    async def get_api_keys(self, account_id: str) -> Result[list[ApiKeyScopes]]:
        async def body(session):
            credentials = SQLAlchemyCredentialRepository(session)
            keys = []
            for credential in await credentials.list_for_account(account_id):
                key_pair = KeyPair(credential.api_key, credential.secret_key)
                stored = await credentials.get_scopes(key_pair) or []
                scopes = frozenset(scope for scope in stored if scope is not None)
                keys.append(ApiKeyScopes(key_pair.api_key, key_pair.secret_key, scopes))
            return keys

        return await self._run("get_api_keys", body)

    async def update_api_keys(
        self, account_id: str, api_key: str, secret_key: str, scopes: Iterable[str]
    ) -> Result[ApiKeyScopes]:
        """Make the key pair's stored scopes equal ``scopes``, writing only the delta."""
        checked = _checked_scopes(scopes)
        if isinstance(checked, Err):
            return checked
        key_pair = KeyPair(api_key, secret_key)

        async def body(session):
            credentials = SQLAlchemyCredentialRepository(session)
            if await credentials.get(key_pair, account_id=account_id) is None:
                return Err(ErrorKind.MISSING_CREDENTIAL, "Key pair not found for account")
            delta = await sync_credential_scopes(credentials, key_pair, checked)
            if not delta.is_empty:
                logger.info(
                    "Updated credential scopes",
                    data={
                        "api_key": api_key,
                        "added": sorted(delta.to_add),
                        "removed": sorted(delta.to_remove),
                    },
                )
            return ApiKeyScopes(api_key, secret_key, checked)

        return await self._run("update_api_keys", body)

    async def delete_api_keys(self, account_id: str, api_key: str, secret_key: str) -> Result[KeyPair]:
        """Delete a key pair; account, api key and secret key must all match."""
        key_pair = KeyPair(api_key, secret_key)

        async def body(session):
            credentials = SQLAlchemyCredentialRepository(session)
            credential = await credentials.get(key_pair, account_id=account_id)
            if credential is not None:
                await credentials.delete(credential)
            return key_pair

        return await self._run("delete_api_keys", body)
