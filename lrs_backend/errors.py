"""Exceptions raised inside a transaction.

These never cross the service boundary: the transaction helper rolls back and
turns them into ``Err`` values carrying the matching ``ErrorKind``.
"""

from __future__ import annotations

from lrs_backend.results import ErrorKind


class StorageError(Exception):
    """Base exception for transaction-aborting storage failures."""

    kind: ErrorKind = ErrorKind.STORAGE_FAILURE

    def __init__(self, message: str = "Storage failure"):
        self.message = message
        super().__init__(message)


class StatementConflictError(StorageError):
    """A statement id already exists with a different payload."""

    kind = ErrorKind.STATEMENT_CONFLICT

    def __init__(self, statement_id: str):
        self.statement_id = statement_id
        super().__init__(f"Statement {statement_id} already exists with different content")


class InvalidVoidingError(StorageError):
    """A voiding statement targets another voiding statement."""

    kind = ErrorKind.INVALID_VOIDING

    def __init__(self, statement_id: str, target_id: str):
        self.statement_id = statement_id
        self.target_id = target_id
        super().__init__(
            f"Statement {statement_id} cannot void {target_id}: target is a voiding statement"
        )


class DocumentMergeError(StorageError):
    """A merge was requested for content that is not a JSON object."""

    kind = ErrorKind.INVALID_DOCUMENT_MERGE

    def __init__(self, message: str = "Only JSON object documents can be merged"):
        super().__init__(message)


class ExistingAccountError(StorageError):
    """The username was taken between the lookup and the insert."""

    kind = ErrorKind.EXISTING_ACCOUNT

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Account {username!r} already exists")
