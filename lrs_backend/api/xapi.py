"""Minimal xAPI routes: about and statements."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from ..auth.credentials import AuthIdentity
from ..lrs import LearningRecordStore
from .deps import get_lrs, require_identity
from .errors import unwrap

XAPI_VERSION_HEADER = "X-Experience-API-Version"
CONSISTENT_THROUGH_HEADER = "X-Experience-API-Consistent-Through"
XAPI_VERSION = "1.0.3"


def build_router(url_prefix: str) -> APIRouter:
    router = APIRouter(prefix=url_prefix)

    @router.get("/about")
    async def get_about(response: Response, lrs: LearningRecordStore = Depends(get_lrs)) -> dict:
        response.headers[XAPI_VERSION_HEADER] = XAPI_VERSION
        return lrs.get_about()

    @router.get("/statements")
    async def get_statements(
        request: Request,
        response: Response,
        identity: AuthIdentity = Depends(require_identity),
        lrs: LearningRecordStore = Depends(get_lrs),
    ) -> dict:
        params = dict(request.query_params)
        # Multipart attachment responses are not served over this adapter.
        params.pop("attachments", None)
        result = unwrap(await lrs.get_statements(identity, params))
        response.headers[XAPI_VERSION_HEADER] = XAPI_VERSION
        response.headers[CONSISTENT_THROUGH_HEADER] = lrs.consistent_through()
        if params.get("statementId") or params.get("voidedStatementId"):
            if "statement" not in result:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Statement not found")
            return result["statement"]
        return result

    @router.post("/statements")
    async def post_statements(
        payload: Any = Body(...),
        identity: AuthIdentity = Depends(require_identity),
        lrs: LearningRecordStore = Depends(get_lrs),
    ) -> list[str]:
        statements = payload if isinstance(payload, list) else [payload]
        return unwrap(await lrs.store_statements(identity, statements))

    @router.put("/statements", status_code=status.HTTP_204_NO_CONTENT)
    async def put_statement(
        statementId: str,
        payload: dict = Body(...),
        identity: AuthIdentity = Depends(require_identity),
        lrs: LearningRecordStore = Depends(get_lrs),
    ) -> Response:
        if payload.get("id") and str(payload["id"]).lower() != statementId.lower():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="statementId does not match statement id")
        unwrap(await lrs.store_statements(identity, [{**payload, "id": statementId}]))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
