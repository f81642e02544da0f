"""Repository layer: Protocol interfaces + SQLAlchemy implementations."""

from .actor_repo import ActorRepository, SQLAlchemyActorRepository
from .admin_repo import AdminAccountRepository, SQLAlchemyAdminAccountRepository
from .credential_repo import (
    CredentialRepository,
    CredentialScopeStore,
    SQLAlchemyCredentialRepository,
)
from .document_repo import DocumentRepository, SQLAlchemyDocumentRepository
from .statement_repo import SQLAlchemyStatementRepository, StatementRepository

__all__ = [
    "ActorRepository", "SQLAlchemyActorRepository",
    "AdminAccountRepository", "SQLAlchemyAdminAccountRepository",
    "CredentialRepository", "CredentialScopeStore", "SQLAlchemyCredentialRepository",
    "DocumentRepository", "SQLAlchemyDocumentRepository",
    "StatementRepository", "SQLAlchemyStatementRepository",
]
