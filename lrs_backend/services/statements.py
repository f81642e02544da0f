"""Statement write pipeline and statement read pipeline."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Mapping, Sequence
from urllib.parse import urlencode

from ..auth.authorize import reads_only_own_statements
from ..auth.credentials import AuthIdentity
from ..db.models import Attachment, Statement
from ..inputs.actor import actor_ifi
from ..inputs.statement import (
    StatementAttachment,
    StatementQueryInput,
    add_attachment_insert_inputs,
    add_descendant_insert_inputs,
    statement_insert_input,
    statement_query_input,
)
from ..logging_utils import get_logger
from ..repositories.statement_repo import SQLAlchemyStatementRepository
from ..results import Err, Result
from ..util.statement import (
    add_more_url_prefix,
    build_authority,
    ensure_default_max_limit,
    format_timestamp,
    prepare_statement,
)
from .base import TransactionalService

logger = get_logger(__name__)


def _attachment_view(attachment: Attachment) -> dict:
    return {
        "sha2": attachment.sha2,
        "contentType": attachment.content_type,
        "length": attachment.content_length,
        "content": attachment.contents,
    }


def _more_link(query: StatementQueryInput, last: Statement) -> str:
    params = {
        key: json.dumps(value) if isinstance(value, (dict, list)) else value
        for key, value in query.link_params.items()
    }
    params["from"] = last.seq
    return f"{query.more_url_prefix}/statements?{urlencode(params)}"


class StatementService(TransactionalService):
    async def store_statements(
        self,
        identity: AuthIdentity | None,
        statements: Sequence[Mapping[str, Any]],
        attachments: Sequence[StatementAttachment] = (),
    ) -> Result[list[str]]:
        """Insert a batch of statements atomically.

        Returns the ids actually inserted, in input order; equivalent
        duplicates are left out. Any failure rolls back the whole batch.
        """
        now = datetime.now(UTC)
        authority = build_authority(self._settings, identity) if identity else None

        def build():
            prepared = [prepare_statement(s, authority=authority, now=now) for s in statements]
            return add_attachment_insert_inputs([statement_insert_input(s) for s in prepared], attachments)

        stmt_inputs = self._parse_input("store_statements", build)
        if isinstance(stmt_inputs, Err):
            return stmt_inputs

        async def body(session):
            repo = SQLAlchemyStatementRepository(session)
            inserted = []
            for stmt_input in stmt_inputs:
                descendants = await repo.query_descendants(stmt_input)
                stmt_input = add_descendant_insert_inputs(stmt_input, descendants)
                inserted.append(await repo.insert_statement(stmt_input))
            return [statement_id for statement_id in inserted if statement_id is not None]

        logger.debug("Storing statement batch", data={"count": len(stmt_inputs)})
        return await self._run("store_statements", body)

    async def get_statements(
        self, identity: AuthIdentity | None, params: Mapping[str, Any]
    ) -> Result[dict]:
        """Run a statement query.

        Single lookups return ``{"statement": ...}`` (empty dict if missing);
        multi-statement queries return ``{"statements": [...], "more": url}``.
        ``attachments`` is added when the query asks for it.
        """
        authority_ifi = None
        if identity is not None and reads_only_own_statements(identity):
            authority_ifi = actor_ifi(build_authority(self._settings, identity))

        def build():
            normalized = ensure_default_max_limit(self._settings, add_more_url_prefix(self._settings, params))
            return statement_query_input(normalized, authority_ifi=authority_ifi)

        query = self._parse_input("get_statements", build)
        if isinstance(query, Err):
            return query

        async def body(session):
            repo = SQLAlchemyStatementRepository(session)
            if query.is_single:
                if query.statement_id is not None:
                    row = await repo.query_statement(query.statement_id, voided=False)
                else:
                    row = await repo.query_statement(query.voided_statement_id, voided=True)
                if row is not None and authority_ifi is not None and row.authority_ifi != authority_ifi:
                    row = None
                rows = [row] if row is not None else []
                result: dict = {"statement": row.payload} if row is not None else {}
            else:
                rows, has_more = await repo.query_statements(query)
                result = {
                    "statements": [row.payload for row in rows],
                    "more": _more_link(query, rows[-1]) if has_more and rows else "",
                }
            if query.attachments:
                found = await repo.query_attachments(row.statement_id for row in rows)
                result["attachments"] = [_attachment_view(a) for a in found]
            return result

        return await self._run("get_statements", body)

    def consistent_through(self) -> str:
        """Every committed statement is visible to reads that start after now."""
        return format_timestamp(datetime.now(UTC))
