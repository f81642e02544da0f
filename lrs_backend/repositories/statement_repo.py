"""Statement repository: voiding-aware inserts, descendant lookups and queries."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import (
    Attachment,
    Statement,
    StatementActivity,
    StatementActor,
    StatementToStatement,
)
from ..errors import InvalidVoidingError, StatementConflictError
from ..inputs.statement import StatementInsertInput, StatementQueryInput
from ..util.statement import statements_equivalent
from .actor_repo import SQLAlchemyActorRepository

# Agent usages matched by the agent filter unless related_agents is set
_DIRECT_AGENT_USAGES = ("Actor", "Object")
# Activity usages matched by the activity filter unless related_activities is set
_DIRECT_ACTIVITY_USAGES = ("Object",)


@runtime_checkable
class StatementRepository(Protocol):
    async def get_by_statement_id(self, statement_id: str) -> Statement | None: ...
    async def query_descendants(self, stmt_input: StatementInsertInput) -> list[str]: ...
    async def insert_statement(self, stmt_input: StatementInsertInput) -> str | None: ...
    async def query_statement(self, statement_id: str, voided: bool = False) -> Statement | None: ...
    async def query_statements(self, query: StatementQueryInput) -> tuple[list[Statement], bool]: ...
    async def query_attachments(self, statement_ids: Iterable[str]) -> list[Attachment]: ...


class SQLAlchemyStatementRepository:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._actors = SQLAlchemyActorRepository(session)

    async def get_by_statement_id(self, statement_id: str) -> Statement | None:
        result = await self._session.execute(
            select(Statement).where(Statement.statement_id == statement_id)
        )
        return result.scalar_one_or_none()

    async def query_descendants(self, stmt_input: StatementInsertInput) -> list[str]:
        """Ids a StatementRef statement links to: the target and the target's own links."""
        ref_id = stmt_input.statement_ref_id
        if ref_id is None:
            return []
        result = await self._session.execute(
            select(StatementToStatement.descendant_id)
            .where(StatementToStatement.ancestor_id == ref_id)
            .order_by(StatementToStatement.id)
        )
        descendants = [ref_id]
        for descendant_id in result.scalars().all():
            if descendant_id not in descendants:
                descendants.append(descendant_id)
        return descendants

    async def insert_statement(self, stmt_input: StatementInsertInput) -> str | None:
        """Insert one statement and everything indexed from it.

        Returns None when an equivalent statement with the same id already
        exists. Raises StatementConflictError for a same-id, different-content
        statement and InvalidVoidingError when voiding a voiding statement.
        """
        statement_id = stmt_input.statement_id
        existing = await self.get_by_statement_id(statement_id)
        if existing is not None:
            if statements_equivalent(existing.payload, stmt_input.statement):
                return None
            raise StatementConflictError(statement_id)

        if stmt_input.is_voiding:
            await self._void(statement_id, stmt_input.statement_ref_id)

        # A voiding statement may have been stored before its target.
        voider = await self._stored_voider(statement_id)
        if voider is not None and stmt_input.is_voiding:
            raise InvalidVoidingError(voider.statement_id, statement_id)

        self._session.add(
            Statement(
                statement_id=statement_id,
                registration=stmt_input.registration,
                verb_iri=stmt_input.verb_iri,
                is_voided=voider is not None,
                is_voiding=stmt_input.is_voiding,
                statement_ref_id=stmt_input.statement_ref_id,
                authority_ifi=stmt_input.authority_ifi,
                stored=stmt_input.stored,
                payload=stmt_input.statement,
            )
        )
        for actor in stmt_input.actors:
            await self._actors.upsert_actor(actor.actor_ifi, actor.actor_type, actor.payload)
            self._session.add(
                StatementActor(statement_id=statement_id, actor_ifi=actor.actor_ifi, usage=actor.usage)
            )
        for activity in stmt_input.activities:
            await self._actors.upsert_activity(activity.activity_iri, activity.payload)
            self._session.add(
                StatementActivity(
                    statement_id=statement_id, activity_iri=activity.activity_iri, usage=activity.usage
                )
            )
        for attachment in stmt_input.attachments:
            self._session.add(
                Attachment(
                    statement_id=statement_id,
                    sha2=attachment.sha2,
                    content_type=attachment.content_type,
                    content_length=attachment.content_length,
                    contents=attachment.contents,
                )
            )
        for descendant_id in stmt_input.descendant_ids:
            self._session.add(StatementToStatement(ancestor_id=statement_id, descendant_id=descendant_id))

        await self._session.flush()
        return statement_id

    async def _void(self, statement_id: str, target_id: str | None) -> None:
        target = await self.get_by_statement_id(target_id) if target_id else None
        if target is None:
            # Voiding an unknown statement is allowed; nothing to mark.
            return
        if target.is_voiding:
            raise InvalidVoidingError(statement_id, target_id)
        target.is_voided = True

    async def _stored_voider(self, statement_id: str) -> Statement | None:
        result = await self._session.execute(
            select(Statement)
            .where(Statement.is_voiding.is_(True), Statement.statement_ref_id == statement_id)
            .order_by(Statement.seq)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def query_statement(self, statement_id: str, voided: bool = False) -> Statement | None:
        result = await self._session.execute(
            select(Statement).where(
                Statement.statement_id == statement_id,
                Statement.is_voided.is_(voided),
            )
        )
        return result.scalar_one_or_none()

    async def query_statements(self, query: StatementQueryInput) -> tuple[list[Statement], bool]:
        """One page of non-voided statements plus whether another page exists."""
        stmt = select(Statement).where(Statement.is_voided.is_(False))

        if query.verb_iri:
            stmt = stmt.where(Statement.verb_iri == query.verb_iri)
        if query.registration:
            stmt = stmt.where(Statement.registration == query.registration)
        if query.since:
            stmt = stmt.where(Statement.stored > query.since)
        if query.until:
            stmt = stmt.where(Statement.stored <= query.until)
        if query.authority_ifi is not None:
            stmt = stmt.where(Statement.authority_ifi == query.authority_ifi)

        if query.agent_ifi is not None:
            actor_ids = select(StatementActor.statement_id).where(StatementActor.actor_ifi == query.agent_ifi)
            if not query.related_agents:
                actor_ids = actor_ids.where(StatementActor.usage.in_(_DIRECT_AGENT_USAGES))
            stmt = stmt.where(Statement.statement_id.in_(actor_ids))

        if query.activity_iri:
            activity_ids = select(StatementActivity.statement_id).where(
                StatementActivity.activity_iri == query.activity_iri
            )
            if not query.related_activities:
                activity_ids = activity_ids.where(StatementActivity.usage.in_(_DIRECT_ACTIVITY_USAGES))
            stmt = stmt.where(Statement.statement_id.in_(activity_ids))

        if query.from_seq is not None:
            if query.ascending:
                stmt = stmt.where(Statement.seq > query.from_seq)
            else:
                stmt = stmt.where(Statement.seq < query.from_seq)

        order = Statement.seq.asc() if query.ascending else Statement.seq.desc()
        result = await self._session.execute(stmt.order_by(order).limit(query.limit + 1))
        rows = list(result.scalars().all())
        return rows[: query.limit], len(rows) > query.limit

    async def query_attachments(self, statement_ids: Iterable[str]) -> list[Attachment]:
        statement_ids = list(statement_ids)
        if not statement_ids:
            return []
        result = await self._session.execute(
            select(Attachment).where(Attachment.statement_id.in_(statement_ids)).order_by(Attachment.id)
        )
        return list(result.scalars().all())
