"""Mapping of service results onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..logging_utils import get_logger
from ..results import Err, ErrorKind, Ok, Result

logger = get_logger(__name__)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.FORBIDDEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.DECODE_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISSING_ACCOUNT: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.EXISTING_ACCOUNT: status.HTTP_409_CONFLICT,
    ErrorKind.MISSING_CREDENTIAL: status.HTTP_404_NOT_FOUND,
    ErrorKind.STATEMENT_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_VOIDING: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DOCUMENT_MERGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_status_to_code(status_code: int) -> str:
    return f"E{status_code}0"


def build_error_envelope(*, code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def unwrap(result: Result) -> object:
    """Return an Ok value or raise the HTTPException matching the Err kind."""
    if isinstance(result, Ok):
        return result.value
    err: Err = result
    status_code = ERROR_STATUS.get(err.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    # Storage internals stay out of responses.
    message = "Internal server error" if status_code >= 500 else (err.message or err.kind.value)
    raise HTTPException(status_code=status_code, detail=message)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the error envelope for HTTP errors."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code}: {exc.detail}", data={"path": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_envelope(code=http_status_to_code(exc.status_code), message=str(exc.detail)),
            headers=exc.headers,
        )
