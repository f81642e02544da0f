"""Capability interfaces the LRS exposes to a transport."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from .auth.credentials import ApiKeyScopes, AuthIdentity, KeyPair
from .inputs.document import DocumentBody
from .inputs.statement import StatementAttachment
from .results import Result


@runtime_checkable
class StatementsResource(Protocol):
    async def store_statements(
        self,
        identity: AuthIdentity | None,
        statements: Sequence[Mapping[str, Any]],
        attachments: Sequence[StatementAttachment] = (),
    ) -> Result[list[str]]: ...
    async def get_statements(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]: ...
    def consistent_through(self) -> str: ...


@runtime_checkable
class DocumentResource(Protocol):
    async def set_document(
        self,
        identity: AuthIdentity | None,
        params: Mapping[str, Any],
        document: DocumentBody,
        merge: bool = False,
    ) -> Result[None]: ...
    async def get_document(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]: ...
    async def get_document_ids(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]: ...
    async def delete_document(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[None]: ...
    async def delete_documents(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[None]: ...


@runtime_checkable
class AgentInfoResource(Protocol):
    async def get_person(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]: ...


@runtime_checkable
class ActivityInfoResource(Protocol):
    async def get_activity(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]: ...


@runtime_checkable
class LRSAuth(Protocol):
    async def authenticate(self, api_key: str, secret_key: str) -> Result[AuthIdentity]: ...
    async def authenticate_header(self, header: str | None) -> Result[AuthIdentity]: ...
    def authorize(self, method: str, path: str, identity: AuthIdentity) -> bool: ...


@runtime_checkable
class AdminAccountManager(Protocol):
    async def create_account(self, username: str, password: str) -> Result[str]: ...
    async def authenticate_account(self, username: str, password: str) -> Result[str]: ...
    async def delete_account(self, account_id: str) -> Result[str]: ...


@runtime_checkable
class APIKeyManager(Protocol):
    async def create_api_keys(self, account_id: str, scopes: Iterable[str]) -> Result[ApiKeyScopes]: ...
    async def get_api_keys(self, account_id: str) -> Result[list[ApiKeyScopes]]: ...
    async def update_api_keys(
        self, account_id: str, api_key: str, secret_key: str, scopes: Iterable[str]
    ) -> Result[ApiKeyScopes]: ...
    async def delete_api_keys(self, account_id: str, api_key: str, secret_key: str) -> Result[KeyPair]: ...
