"""Tagged result values returned across the service boundary.

Service operations never raise for expected failure modes. They return
``Ok(value)`` on success or ``Err(kind, message)`` naming the failure, and
the transport decides how to present each kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    FORBIDDEN = "forbidden"
    DECODE_ERROR = "decode_error"
    MISSING_ACCOUNT = "missing_account"
    INVALID_PASSWORD = "invalid_password"
    EXISTING_ACCOUNT = "existing_account"
    MISSING_CREDENTIAL = "missing_credential"
    STATEMENT_CONFLICT = "statement_conflict"
    INVALID_VOIDING = "invalid_voiding"
    INVALID_DOCUMENT_MERGE = "invalid_document_merge"
    INVALID_INPUT = "invalid_input"
    STORAGE_FAILURE = "storage_failure"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]

FORBIDDEN = Err(ErrorKind.FORBIDDEN, "Unknown credentials")
