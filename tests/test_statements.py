"""Statement write pipeline: ordering, voiding, duplicates and atomicity."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from factories import BOB, COURSE, make_statement, new_id, voiding_statement
from lrs_backend.db.models import Attachment, Statement, StatementActivity, StatementActor, StatementToStatement
from lrs_backend.inputs.statement import StatementAttachment, statement_insert_input
from lrs_backend.repositories.statement_repo import SQLAlchemyStatementRepository
from lrs_backend.results import Err, ErrorKind, Ok
from lrs_backend.util.statement import prepare_statement

pytestmark = pytest.mark.asyncio


async def _rows(session_factory, model):
    async with session_factory() as session:
        result = await session.execute(select(model))
        return list(result.scalars().all())


async def _statement_ids(session_factory) -> set[str]:
    return {row.statement_id for row in await _rows(session_factory, Statement)}


class TestStoreStatements:
    async def test_ids_in_input_order(self, lrs, writer):
        ids = [new_id() for _ in range(3)]
        result = await lrs.store_statements(writer, [make_statement(statement_id=i) for i in ids])
        assert result == Ok(ids)

    async def test_ids_are_generated_and_lowercased(self, lrs, writer):
        upper = new_id().upper()
        result = await lrs.store_statements(writer, [make_statement(), make_statement(statement_id=upper)])
        generated, given = result.value
        assert len(generated) == 36
        assert given == upper.lower()

    async def test_lrs_owned_properties(self, lrs, writer, settings):
        statement_id = new_id()
        await lrs.store_statements(writer, [make_statement(statement_id=statement_id)])
        stored = (await lrs.get_statements(writer, {"statementId": statement_id})).value["statement"]
        assert stored["stored"].endswith("Z")
        assert stored["timestamp"] == stored["stored"]
        assert stored["version"] == "1.0.0"
        assert stored["authority"] == {
            "objectType": "Agent",
            "account": {"homePage": settings.authority_url, "name": writer.auth.api_key},
        }

    async def test_given_timestamp_is_kept(self, lrs, writer):
        statement_id = new_id()
        timestamp = "2020-01-02T03:04:05.000Z"
        await lrs.store_statements(writer, [make_statement(statement_id=statement_id, timestamp=timestamp)])
        stored = (await lrs.get_statements(writer, {"statementId": statement_id})).value["statement"]
        assert stored["timestamp"] == timestamp

    async def test_equivalent_duplicate_is_skipped(self, lrs, writer, session_factory):
        statement_id = new_id()
        statement = make_statement(statement_id=statement_id)
        await lrs.store_statements(writer, [statement])

        second_id = new_id()
        result = await lrs.store_statements(writer, [statement, make_statement(statement_id=second_id)])
        assert result == Ok([second_id])
        assert await _statement_ids(session_factory) == {statement_id, second_id}

    async def test_conflict_rolls_back_whole_batch(self, lrs, writer, session_factory):
        statement_id = new_id()
        await lrs.store_statements(writer, [make_statement(statement_id=statement_id)])

        fresh_id = new_id()
        conflicting = make_statement(statement_id=statement_id, verb="http://adlnet.gov/expapi/verbs/failed")
        result = await lrs.store_statements(writer, [make_statement(statement_id=fresh_id), conflicting])

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.STATEMENT_CONFLICT
        assert await _statement_ids(session_factory) == {statement_id}

    async def test_indexes_actors_and_activities(self, lrs, writer, session_factory):
        statement = make_statement(
            statement_id=new_id(),
            context={
                "instructor": BOB,
                "contextActivities": {"parent": [{"id": COURSE}]},
            },
        )
        await lrs.store_statements(writer, [statement])

        actor_usages = {(a.actor_ifi, a.usage) for a in await _rows(session_factory, StatementActor)}
        assert ("mbox::mailto:alice@example.com", "Actor") in actor_usages
        assert ("mbox::mailto:bob@example.com", "Instructor") in actor_usages
        assert any(usage == "Authority" for _, usage in actor_usages)

        activity_usages = {(a.activity_iri, a.usage) for a in await _rows(session_factory, StatementActivity)}
        assert (COURSE, "Parent") in activity_usages

    async def test_attachments_are_stored(self, lrs, writer, session_factory):
        statement_id = new_id()
        statement = make_statement(
            statement_id=statement_id,
            attachments=[
                {
                    "usageType": "http://example.com/usage/notes",
                    "display": {"en-US": "notes"},
                    "contentType": "text/plain",
                    "length": 5,
                    "sha2": "abc123",
                }
            ],
        )
        body = StatementAttachment(sha2="abc123", content_type="text/plain", contents=b"hello")
        unrelated = StatementAttachment(sha2="zzz", content_type="text/plain", contents=b"nope")
        await lrs.store_statements(writer, [statement], [body, unrelated])

        attachments = await _rows(session_factory, Attachment)
        assert [(a.statement_id, a.sha2, a.contents) for a in attachments] == [
            (statement_id, "abc123", b"hello")
        ]

        result = (await lrs.get_statements(writer, {"statementId": statement_id, "attachments": "true"})).value
        assert result["attachments"] == [
            {"sha2": "abc123", "contentType": "text/plain", "length": 5, "content": b"hello"}
        ]


class TestVoiding:
    async def test_void_in_same_batch(self, lrs, writer, session_factory):
        target, voider = new_id(), new_id()
        result = await lrs.store_statements(
            writer, [make_statement(statement_id=target), voiding_statement(target, statement_id=voider)]
        )
        assert result == Ok([target, voider])

        assert (await lrs.get_statements(writer, {"statementId": target})).value == {}
        voided = (await lrs.get_statements(writer, {"voidedStatementId": target})).value
        assert voided["statement"]["id"] == target

        listed = (await lrs.get_statements(writer, {})).value["statements"]
        assert [s["id"] for s in listed] == [voider]

        links = await _rows(session_factory, StatementToStatement)
        assert [(l.ancestor_id, l.descendant_id) for l in links] == [(voider, target)]

    async def test_voider_before_target_in_same_batch(self, lrs, writer):
        target, voider = new_id(), new_id()
        result = await lrs.store_statements(
            writer, [voiding_statement(target, statement_id=voider), make_statement(statement_id=target)]
        )
        assert result == Ok([voider, target])

        assert (await lrs.get_statements(writer, {"statementId": target})).value == {}
        voided = (await lrs.get_statements(writer, {"voidedStatementId": target})).value
        assert voided["statement"]["id"] == target

    async def test_voider_stored_in_earlier_batch(self, lrs, writer):
        target, voider = new_id(), new_id()
        await lrs.store_statements(writer, [voiding_statement(target, statement_id=voider)])
        await lrs.store_statements(writer, [make_statement(statement_id=target)])

        assert (await lrs.get_statements(writer, {"statementId": target})).value == {}
        assert (await lrs.get_statements(writer, {"voidedStatementId": target})).value["statement"]["id"] == target

    async def test_late_target_that_is_itself_voiding(self, lrs, writer, session_factory):
        first, second = new_id(), new_id()
        result = await lrs.store_statements(
            writer,
            [voiding_statement(second, statement_id=first), voiding_statement(new_id(), statement_id=second)],
        )
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.INVALID_VOIDING
        assert await _statement_ids(session_factory) == set()

    async def test_voided_lookup_of_unvoided_statement(self, lrs, writer):
        statement_id = new_id()
        await lrs.store_statements(writer, [make_statement(statement_id=statement_id)])
        assert (await lrs.get_statements(writer, {"voidedStatementId": statement_id})).value == {}

    async def test_voiding_a_voiding_statement_fails(self, lrs, writer, session_factory):
        target, voider = new_id(), new_id()
        await lrs.store_statements(
            writer, [make_statement(statement_id=target), voiding_statement(target, statement_id=voider)]
        )

        extra = new_id()
        result = await lrs.store_statements(
            writer, [make_statement(statement_id=extra), voiding_statement(voider)]
        )
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.INVALID_VOIDING
        assert extra not in await _statement_ids(session_factory)

    async def test_voiding_unknown_statement_is_stored(self, lrs, writer):
        result = await lrs.store_statements(writer, [voiding_statement(new_id())])
        assert isinstance(result, Ok)

    async def test_descendants_follow_statement_refs(self, lrs, writer, session_factory):
        first, second, third = new_id(), new_id(), new_id()
        def ref(target, sid):
            return make_statement(statement_id=sid, object={"objectType": "StatementRef", "id": target})

        await lrs.store_statements(writer, [make_statement(statement_id=first)])
        await lrs.store_statements(writer, [ref(first, second)])
        await lrs.store_statements(writer, [ref(second, third)])

        links = {(l.ancestor_id, l.descendant_id) for l in await _rows(session_factory, StatementToStatement)}
        assert links == {(second, first), (third, second), (third, first)}


class TestMalformedStatements:
    async def test_missing_verb(self, lrs, writer, session_factory):
        statement = make_statement()
        del statement["verb"]
        result = await lrs.store_statements(writer, [make_statement(), statement])
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.INVALID_INPUT
        assert await _statement_ids(session_factory) == set()

    async def test_actor_is_not_an_object(self, lrs, writer):
        result = await lrs.store_statements(writer, [make_statement(actor="alice")])
        assert result.kind is ErrorKind.INVALID_INPUT


class TestStorageFailure:
    async def test_failure_mid_batch_commits_nothing(self, lrs, writer, session_factory, monkeypatch):
        original = SQLAlchemyStatementRepository.insert_statement
        calls = []

        async def insert_then_fail(self, stmt_input):
            calls.append(stmt_input.statement_id)
            if len(calls) == 2:
                raise SQLAlchemyError("connection dropped")
            return await original(self, stmt_input)

        monkeypatch.setattr(SQLAlchemyStatementRepository, "insert_statement", insert_then_fail)
        ids = [new_id() for _ in range(3)]
        result = await lrs.store_statements(writer, [make_statement(statement_id=i) for i in ids])

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.STORAGE_FAILURE
        assert calls == ids[:2]
        assert await _statement_ids(session_factory) == set()
        assert await _rows(session_factory, StatementActor) == []

        monkeypatch.setattr(SQLAlchemyStatementRepository, "insert_statement", original)
        assert await lrs.store_statements(writer, [make_statement(statement_id=ids[0])]) == Ok([ids[0]])

    async def test_err_after_writes_rolls_back(self, lrs, writer, session_factory):
        statement_id = new_id()

        async def body(session):
            repo = SQLAlchemyStatementRepository(session)
            stmt_input = statement_insert_input(prepare_statement(make_statement(statement_id=statement_id)))
            await repo.insert_statement(stmt_input)
            return Err(ErrorKind.STATEMENT_CONFLICT, "rejected after write")

        result = await lrs._run("store_then_reject", body)
        assert result == Err(ErrorKind.STATEMENT_CONFLICT, "rejected after write")
        assert await _statement_ids(session_factory) == set()
        assert (await lrs.get_statements(writer, {})).value["statements"] == []
