"""Database module for the LRS."""

from lrs_backend.db.models import (
    Activity,
    Actor,
    AdminAccount,
    Attachment,
    Base,
    Credential,
    CredentialScope,
    Document,
    Statement,
    StatementActivity,
    StatementActor,
    StatementToStatement,
)
from lrs_backend.db.session import make_engine, make_session_factory, transaction

__all__ = [
    # Database infrastructure
    "Base",
    "make_engine",
    "make_session_factory",
    "transaction",
    # Accounts & credentials
    "AdminAccount",
    "Credential",
    "CredentialScope",
    # Statements
    "Statement",
    "StatementToStatement",
    "StatementActor",
    "StatementActivity",
    "Attachment",
    # Actors & activities
    "Actor",
    "Activity",
    # Documents
    "Document",
]
