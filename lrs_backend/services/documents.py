"""Document resource: state, activity profile and agent profile documents."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..auth.credentials import AuthIdentity
from ..db.models import Document
from ..errors import DocumentMergeError
from ..inputs.document import (
    JSON_CONTENT_TYPE,
    DocumentBody,
    document_ids_input,
    document_input,
    document_multi_input,
)
from ..repositories.document_repo import SQLAlchemyDocumentRepository
from ..results import Err, Result
from .base import TransactionalService


def merge_documents(current: DocumentBody, incoming: DocumentBody) -> DocumentBody:
    """Shallow-merge two JSON object documents; later keys win."""
    current_obj = current.json_object()
    incoming_obj = incoming.json_object()
    if current_obj is None or incoming_obj is None:
        raise DocumentMergeError()
    merged = {**current_obj, **incoming_obj}
    return DocumentBody(contents=json.dumps(merged).encode("utf-8"), content_type=JSON_CONTENT_TYPE)


def _document_view(document: Document) -> dict:
    return {
        "id": document.document_id,
        "contents": document.contents,
        "content_type": document.content_type,
        "content_length": document.content_length,
        "updated": document.last_modified.isoformat(),
    }


class DocumentService(TransactionalService):
    async def set_document(
        self,
        identity: AuthIdentity | None,
        params: Mapping[str, Any],
        document: DocumentBody,
        merge: bool = False,
    ) -> Result[None]:
        """Insert or overwrite a document, or merge it into the stored one."""
        key = self._parse_input("set_document", lambda: document_input(params))
        if isinstance(key, Err):
            return key

        async def body(session):
            repo = SQLAlchemyDocumentRepository(session)
            existing = await repo.get(key)
            if existing is None:
                if merge and document.json_object() is None:
                    raise DocumentMergeError()
                await repo.insert(key, document)
            elif merge:
                current = DocumentBody(contents=existing.contents, content_type=existing.content_type)
                await repo.replace(existing, merge_documents(current, document))
            else:
                await repo.replace(existing, document)
            return None

        return await self._run("set_document", body)

    async def get_document(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]:
        key = self._parse_input("get_document", lambda: document_input(params))
        if isinstance(key, Err):
            return key

        async def body(session):
            document = await SQLAlchemyDocumentRepository(session).get(key)
            return {"document": _document_view(document)} if document is not None else {}

        return await self._run("get_document", body)

    async def get_document_ids(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]:
        ids_input = self._parse_input("get_document_ids", lambda: document_ids_input(params))
        if isinstance(ids_input, Err):
            return ids_input

        async def body(session):
            return {"document_ids": await SQLAlchemyDocumentRepository(session).list_ids(ids_input)}

        return await self._run("get_document_ids", body)

    async def delete_document(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[None]:
        key = self._parse_input("delete_document", lambda: document_input(params))
        if isinstance(key, Err):
            return key

        async def body(session):
            await SQLAlchemyDocumentRepository(session).delete(key)
            return None

        return await self._run("delete_document", body)

    async def delete_documents(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[None]:
        """Delete every state document of an activity/agent (and registration)."""
        multi = self._parse_input("delete_documents", lambda: document_multi_input(params))
        if isinstance(multi, Err):
            return multi

        async def body(session):
            await SQLAlchemyDocumentRepository(session).delete_all(multi)
            return None

        return await self._run("delete_documents", body)
