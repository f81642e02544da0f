"""HTTP adapter: Basic auth, scope checks and the statements routes."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from factories import make_statement, new_id
from lrs_backend.app import create_app
from lrs_backend.auth.credentials import KeyPair, key_pair_to_header
from lrs_backend.config import Settings
from lrs_backend.db.models import Base
from lrs_backend.db.session import make_engine, make_session_factory, transaction
from lrs_backend.repositories.credential_repo import SQLAlchemyCredentialRepository

ADMIN = KeyPair("default-key", "default-secret")
STATE_ONLY = KeyPair("state-key", "state-secret")


async def _seed_state_only(database_url: str) -> None:
    engine = make_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with transaction(make_session_factory(engine)) as session:
        credentials = SQLAlchemyCredentialRepository(session)
        await credentials.create(None, STATE_ONLY)
        await credentials.insert_scopes(STATE_ONLY, ["state"])
    await engine.dispose()


@pytest.fixture()
def client(database_url):
    asyncio.run(_seed_state_only(database_url))
    settings = Settings(
        _env_file=None,
        database_url=database_url,
        api_key_default=ADMIN.api_key,
        api_secret_default=ADMIN.secret_key,
    )
    with TestClient(create_app(settings)) as c:
        yield c


def _auth(pair: KeyPair) -> dict:
    return {"Authorization": key_pair_to_header(pair)}


def test_about_needs_no_credentials(client: TestClient):
    res = client.get("/xapi/about")
    assert res.status_code == 200
    assert "1.0.3" in res.json()["version"]


def test_missing_credentials(client: TestClient):
    res = client.get("/xapi/statements")
    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"].startswith("Basic")
    assert res.json()["error"]["code"] == "E4010"


def test_unknown_credentials(client: TestClient):
    res = client.get("/xapi/statements", headers=_auth(KeyPair("who", "knows")))
    assert res.status_code == 401


def test_scope_does_not_cover_request(client: TestClient):
    res = client.get("/xapi/statements", headers=_auth(STATE_ONLY))
    assert res.status_code == 403


def test_post_then_get(client: TestClient):
    statement_id = new_id()
    res = client.post("/xapi/statements", json=[make_statement(statement_id=statement_id)], headers=_auth(ADMIN))
    assert res.status_code == 200
    assert res.json() == [statement_id]

    res = client.get("/xapi/statements", params={"statementId": statement_id}, headers=_auth(ADMIN))
    assert res.status_code == 200
    assert res.json()["id"] == statement_id
    assert res.headers["X-Experience-API-Version"] == "1.0.3"
    assert "X-Experience-API-Consistent-Through" in res.headers

    res = client.get("/xapi/statements", headers=_auth(ADMIN))
    assert [s["id"] for s in res.json()["statements"]] == [statement_id]


def test_single_statement_post(client: TestClient):
    res = client.post("/xapi/statements", json=make_statement(), headers=_auth(ADMIN))
    assert res.status_code == 200
    assert len(res.json()) == 1


def test_missing_statement(client: TestClient):
    res = client.get("/xapi/statements", params={"statementId": new_id()}, headers=_auth(ADMIN))
    assert res.status_code == 404


def test_conflict(client: TestClient):
    statement_id = new_id()
    client.post("/xapi/statements", json=make_statement(statement_id=statement_id), headers=_auth(ADMIN))
    res = client.post(
        "/xapi/statements",
        json=make_statement(statement_id=statement_id, verb="http://adlnet.gov/expapi/verbs/failed"),
        headers=_auth(ADMIN),
    )
    assert res.status_code == 409


def test_put_statement(client: TestClient):
    statement_id = new_id()
    res = client.put(
        "/xapi/statements",
        params={"statementId": statement_id},
        json=make_statement(),
        headers=_auth(ADMIN),
    )
    assert res.status_code == 204

    res = client.get("/xapi/statements", params={"statementId": statement_id}, headers=_auth(ADMIN))
    assert res.status_code == 200


def test_statement_without_verb(client: TestClient):
    statement = make_statement()
    del statement["verb"]
    res = client.post("/xapi/statements", json=[statement], headers=_auth(ADMIN))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "E4000"


def test_agent_param_not_json(client: TestClient):
    res = client.get("/xapi/statements", params={"agent": "nope"}, headers=_auth(ADMIN))
    assert res.status_code == 400


def test_put_statement_id_mismatch(client: TestClient):
    res = client.put(
        "/xapi/statements",
        params={"statementId": new_id()},
        json=make_statement(statement_id=new_id()),
        headers=_auth(ADMIN),
    )
    assert res.status_code == 400
