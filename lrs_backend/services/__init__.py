"""LRS services, one per capability group."""

from .admin import AdminService
from .agents import AgentInfoService
from .auth import AuthService, query_credential_scopes
from .base import TransactionalService
from .documents import DocumentService
from .scope_sync import ScopeDelta, diff_scopes, sync_credential_scopes
from .statements import StatementService

__all__ = [
    "AdminService",
    "AgentInfoService",
    "AuthService",
    "DocumentService",
    "ScopeDelta",
    "StatementService",
    "TransactionalService",
    "diff_scopes",
    "query_credential_scopes",
    "sync_credential_scopes",
]
