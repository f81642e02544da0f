"""Document repository for state, activity profile and agent profile documents."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Document
from ..inputs.document import DocumentBody, DocumentIdsInput, DocumentKey, DocumentMultiInput


def _matches(column, value):
    # NULL never compares equal, so absent context must be matched with IS NULL.
    return column.is_(None) if value is None else column == value


@runtime_checkable
class DocumentRepository(Protocol):
    async def get(self, key: DocumentKey) -> Document | None: ...
    async def insert(self, key: DocumentKey, body: DocumentBody) -> Document: ...
    async def replace(self, document: Document, body: DocumentBody) -> Document: ...
    async def delete(self, key: DocumentKey) -> int: ...
    async def delete_all(self, multi: DocumentMultiInput) -> int: ...
    async def list_ids(self, ids_input: DocumentIdsInput) -> list[str]: ...


class SQLAlchemyDocumentRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _key_filter(key: DocumentKey):
        return (
            Document.kind == key.kind,
            Document.document_id == key.document_id,
            _matches(Document.activity_iri, key.activity_iri),
            _matches(Document.agent_ifi, key.agent_ifi),
            _matches(Document.registration, key.registration),
        )

    async def get(self, key: DocumentKey) -> Document | None:
        result = await self._session.execute(select(Document).where(*self._key_filter(key)))
        return result.scalar_one_or_none()

    async def insert(self, key: DocumentKey, body: DocumentBody) -> Document:
        document = Document(
            kind=key.kind,
            document_id=key.document_id,
            activity_iri=key.activity_iri,
            agent_ifi=key.agent_ifi,
            registration=key.registration,
            content_type=body.content_type,
            content_length=body.content_length,
            contents=body.contents,
        )
        self._session.add(document)
        await self._session.flush()
        return document

    async def replace(self, document: Document, body: DocumentBody) -> Document:
        document.content_type = body.content_type
        document.content_length = body.content_length
        document.contents = body.contents
        await self._session.flush()
        return document

    async def delete(self, key: DocumentKey) -> int:
        result = await self._session.execute(delete(Document).where(*self._key_filter(key)))
        return result.rowcount

    async def delete_all(self, multi: DocumentMultiInput) -> int:
        query = delete(Document).where(
            Document.kind == "state",
            Document.activity_iri == multi.activity_iri,
            Document.agent_ifi == multi.agent_ifi,
        )
        if multi.registration is not None:
            query = query.where(Document.registration == multi.registration)
        result = await self._session.execute(query)
        return result.rowcount

    async def list_ids(self, ids_input: DocumentIdsInput) -> list[str]:
        query = select(Document.document_id).where(
            Document.kind == ids_input.kind,
            _matches(Document.activity_iri, ids_input.activity_iri),
            _matches(Document.agent_ifi, ids_input.agent_ifi),
        )
        if ids_input.registration is not None:
            query = query.where(Document.registration == ids_input.registration)
        if ids_input.since is not None:
            query = query.where(Document.last_modified > ids_input.since)
        result = await self._session.execute(query.order_by(Document.id))
        return list(result.scalars().all())
