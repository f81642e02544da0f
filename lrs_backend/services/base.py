"""Shared transaction-per-call plumbing for the LRS services."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..db.session import transaction
from ..errors import StorageError
from ..logging_utils import get_logger
from ..results import Err, ErrorKind, Ok, Result

logger = get_logger(__name__)

T = TypeVar("T")


class _Abort(Exception):
    """Carries an Err out of a transaction block so the block rolls back."""

    def __init__(self, err: Err):
        self.err = err
        super().__init__(err.message)


class TransactionalService:
    """Base for services that run every public operation in one transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings):
        self._sf = session_factory
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings

    def _parse_input(self, operation: str, build: Callable[[], T]) -> T | Err:
        """Build an operation's input from caller params.

        Missing keys, wrong types and unparseable values (including bad JSON)
        come back as ``Err(INVALID_INPUT)`` before any transaction opens.
        """
        try:
            return build()
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.info(
                f"{operation} rejected: malformed input",
                data={"operation": operation, "error": repr(exc)},
            )
            return Err(ErrorKind.INVALID_INPUT, f"Malformed input: {exc}")

    async def _run(
        self,
        operation: str,
        body: Callable[[AsyncSession], Awaitable[T | Ok[Any] | Err]],
    ) -> Result[Any]:
        """Run ``body`` inside one transaction and return its outcome as a Result.

        A body returning Err, or raising StorageError / SQLAlchemyError, rolls
        the transaction back. Plain return values are wrapped in Ok.
        """
        try:
            async with transaction(self._sf) as session:
                value = await body(session)
                if isinstance(value, Err):
                    raise _Abort(value)
        except _Abort as abort:
            logger.info(
                f"{operation} rejected",
                data={"operation": operation, "kind": abort.err.kind.value},
            )
            return abort.err
        except StorageError as exc:
            logger.warning(
                f"{operation} aborted: {exc.message}",
                data={"operation": operation, "kind": exc.kind.value},
            )
            return Err(exc.kind, exc.message)
        except SQLAlchemyError as exc:
            logger.error(
                f"{operation} failed: {type(exc).__name__}",
                data={"operation": operation},
                exc_info=True,
            )
            return Err(ErrorKind.STORAGE_FAILURE, str(exc))
        return value if isinstance(value, Ok) else Ok(value)
