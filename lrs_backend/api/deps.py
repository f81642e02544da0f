"""FastAPI dependencies: the LRS instance and the authenticated identity."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from ..auth.credentials import AuthIdentity
from ..lrs import LearningRecordStore
from ..logging_utils import get_logger
from ..results import Err

logger = get_logger(__name__)


def get_lrs(request: Request) -> LearningRecordStore:
    return request.app.state.lrs


async def require_identity(
    request: Request,
    lrs: LearningRecordStore = Depends(get_lrs),
) -> AuthIdentity:
    """Authenticate the Basic credential, then authorize the request against its scopes.

    Raises:
        HTTPException: 401 for unknown or unusable credentials, 403 when
            no scope covers the request.
    """
    result = await lrs.authenticate_header(request.headers.get("authorization"))
    if isinstance(result, Err):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": 'Basic realm="LRS"'},
        )
    identity = result.value
    if not lrs.authorize(request.method, request.url.path, identity):
        logger.info(
            "Request denied by scope",
            data={"api_key": identity.username, "method": request.method, "path": request.url.path},
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return identity
