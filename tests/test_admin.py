"""Admin accounts and API key management."""

from __future__ import annotations

import bcrypt
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from lrs_backend.auth.credentials import KeyPair
from lrs_backend.auth.password import hash_password, verify_password
from lrs_backend.auth.scopes import DEFAULT_SCOPES, Scope
from lrs_backend.db.models import AdminAccount, Credential, CredentialScope
from lrs_backend.repositories.admin_repo import SQLAlchemyAdminAccountRepository
from lrs_backend.results import Err, ErrorKind, Ok

pytestmark = pytest.mark.asyncio


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestAccounts:
    async def test_create_and_authenticate(self, lrs):
        created = await lrs.create_account("admin", "s3cret-pass")
        assert isinstance(created, Ok)

        result = await lrs.authenticate_account("admin", "s3cret-pass")
        assert result == Ok(created.value)

    async def test_duplicate_username(self, lrs):
        await lrs.create_account("admin", "one")
        result = await lrs.create_account("admin", "two")
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.EXISTING_ACCOUNT

    async def test_username_taken_after_lookup(self, lrs, monkeypatch):
        await lrs.create_account("admin", "one")

        async def not_found(self, username):
            return None

        monkeypatch.setattr(SQLAlchemyAdminAccountRepository, "get_by_username", not_found)
        result = await lrs.create_account("admin", "two")
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.EXISTING_ACCOUNT

    async def test_wrong_password(self, lrs):
        await lrs.create_account("admin", "right")
        result = await lrs.authenticate_account("admin", "wrong")
        assert result.kind is ErrorKind.INVALID_PASSWORD

    async def test_missing_account(self, lrs):
        result = await lrs.authenticate_account("ghost", "whatever")
        assert result.kind is ErrorKind.MISSING_ACCOUNT

    async def test_password_is_hashed(self, lrs, session_factory):
        await lrs.create_account("admin", "plain")
        async with session_factory() as session:
            account = await SQLAlchemyAdminAccountRepository(session).get_by_username("admin")
        assert account.passhash != "plain"
        assert account.passhash.startswith("$argon2")
        assert verify_password("plain", account.passhash)

    async def test_bcrypt_hash_is_upgraded(self, lrs, session_factory):
        legacy = bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt()).decode("utf-8")
        async with session_factory() as session:
            async with session.begin():
                await SQLAlchemyAdminAccountRepository(session).create("old-admin", legacy)

        result = await lrs.authenticate_account("old-admin", "legacy-pass")
        assert isinstance(result, Ok)

        async with session_factory() as session:
            account = await SQLAlchemyAdminAccountRepository(session).get_by_username("old-admin")
        assert account.passhash.startswith("$argon2")
        assert (await lrs.authenticate_account("old-admin", "legacy-pass")) == result

    async def test_delete_account_removes_credentials(self, lrs, session_factory):
        account_id = (await lrs.create_account("admin", "pw")).value
        await lrs.create_api_keys(account_id, ["all"])
        await lrs.create_api_keys(account_id, ["state", "profile"])

        result = await lrs.delete_account(account_id)
        assert result == Ok(account_id)
        assert await _count(session_factory, AdminAccount) == 0
        assert await _count(session_factory, Credential) == 0
        assert await _count(session_factory, CredentialScope) == 0

    async def test_delete_unknown_account(self, lrs):
        assert await lrs.delete_account("00000000-0000-0000-0000-000000000000") == Ok(
            "00000000-0000-0000-0000-000000000000"
        )


class TestApiKeys:
    @pytest_asyncio.fixture
    async def account_id(self, lrs):
        return (await lrs.create_account("keys-admin", "pw")).value

    async def test_create_and_authenticate(self, lrs, account_id):
        created = await lrs.create_api_keys(account_id, ["statements/read", "state"])
        assert created.value.scopes == {"statements/read", "state"}

        identity = await lrs.authenticate(created.value.api_key, created.value.secret_key)
        assert identity.value.scopes == {Scope.STATEMENTS_READ, Scope.STATE}

    async def test_create_without_scopes_uses_defaults(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, [])).value
        identity = await lrs.authenticate(created.api_key, created.secret_key)
        assert identity.value.scopes == DEFAULT_SCOPES

    async def test_create_with_unknown_scope(self, lrs, account_id, session_factory):
        result = await lrs.create_api_keys(account_id, ["all", "superuser"])
        assert result.kind is ErrorKind.DECODE_ERROR
        assert await _count(session_factory, Credential) == 0

    async def test_list(self, lrs, account_id):
        first = (await lrs.create_api_keys(account_id, ["all"])).value
        second = (await lrs.create_api_keys(account_id, [])).value
        other_account = (await lrs.create_account("other", "pw")).value
        await lrs.create_api_keys(other_account, ["define"])

        keys = (await lrs.get_api_keys(account_id)).value
        assert {k.api_key for k in keys} == {first.api_key, second.api_key}
        by_key = {k.api_key: k for k in keys}
        assert by_key[first.api_key].scopes == {"all"}
        assert by_key[second.api_key].scopes == frozenset()

    async def test_update_replaces_scopes(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, ["statements/read"])).value
        result = await lrs.update_api_keys(
            account_id, created.api_key, created.secret_key, ["statements/read", "statements/write"]
        )
        assert result.value.scopes == {"statements/read", "statements/write"}

        identity = (await lrs.authenticate(created.api_key, created.secret_key)).value
        assert identity.scopes == {Scope.STATEMENTS_READ, Scope.STATEMENTS_WRITE}

        keys = (await lrs.get_api_keys(account_id)).value
        assert keys[0].scopes == {"statements/read", "statements/write"}

    async def test_update_is_idempotent(self, lrs, account_id, session_factory):
        created = (await lrs.create_api_keys(account_id, ["state"])).value
        for _ in range(2):
            await lrs.update_api_keys(account_id, created.api_key, created.secret_key, ["define", "profile"])
        assert await _count(session_factory, CredentialScope) == 2
        keys = (await lrs.get_api_keys(account_id)).value
        assert keys[0].scopes == {"define", "profile"}

    async def test_update_to_empty_reverts_to_defaults(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, ["all"])).value
        await lrs.update_api_keys(account_id, created.api_key, created.secret_key, [])
        identity = (await lrs.authenticate(created.api_key, created.secret_key)).value
        assert identity.scopes == DEFAULT_SCOPES

    async def test_update_with_unknown_scope_writes_nothing(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, ["state"])).value
        result = await lrs.update_api_keys(account_id, created.api_key, created.secret_key, ["bogus"])
        assert result.kind is ErrorKind.DECODE_ERROR
        identity = (await lrs.authenticate(created.api_key, created.secret_key)).value
        assert identity.scopes == {Scope.STATE}

    async def test_update_requires_owner(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, ["state"])).value
        other_account = (await lrs.create_account("other", "pw")).value
        result = await lrs.update_api_keys(other_account, created.api_key, created.secret_key, ["all"])
        assert result.kind is ErrorKind.MISSING_CREDENTIAL

    async def test_delete(self, lrs, account_id, session_factory):
        created = (await lrs.create_api_keys(account_id, ["all"])).value
        result = await lrs.delete_api_keys(account_id, created.api_key, created.secret_key)
        assert result == Ok(KeyPair(created.api_key, created.secret_key))

        identity = await lrs.authenticate(created.api_key, created.secret_key)
        assert identity.kind is ErrorKind.FORBIDDEN
        assert await _count(session_factory, CredentialScope) == 0

    async def test_delete_needs_matching_secret(self, lrs, account_id):
        created = (await lrs.create_api_keys(account_id, ["all"])).value
        await lrs.delete_api_keys(account_id, created.api_key, "not-the-secret")
        identity = await lrs.authenticate(created.api_key, created.secret_key)
        assert isinstance(identity, Ok)


class TestPasswordHashing:
    async def test_hash_and_verify(self):
        hashed = hash_password("pw")
        assert verify_password("pw", hashed)
        assert not verify_password("other", hashed)
