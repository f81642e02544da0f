"""Test fixtures: a file-backed async SQLite database per test."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lrs_backend.auth.credentials import AuthIdentity, KeyPair
from lrs_backend.auth.scopes import DEFAULT_SCOPES, Scope
from lrs_backend.config import Settings
from lrs_backend.db.models import Base
from lrs_backend.lrs import LearningRecordStore


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{(tmp_path / 'lrs.db').as_posix()}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        _env_file=None,
        database_url=database_url,
        url_prefix="/xapi",
        stmt_get_default=10,
        stmt_get_max=20,
        authority_url="http://lrs.example.org",
    )


@pytest_asyncio.fixture
async def engine(database_url):
    """Create an async SQLite engine with all tables for tests."""
    eng = create_async_engine(database_url, connect_args={"check_same_thread": False})
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    """Provide an async session factory."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    """Provide a single async session for test use."""
    async with session_factory() as sess:
        async with sess.begin():
            yield sess


@pytest_asyncio.fixture
async def lrs(session_factory, settings) -> LearningRecordStore:
    return LearningRecordStore(session_factory, settings)


@pytest.fixture
def writer() -> AuthIdentity:
    """Identity holding the default scopes (write + read/mine)."""
    return AuthIdentity(scopes=DEFAULT_SCOPES, auth=KeyPair("writer-key", "writer-secret"))


@pytest.fixture
def admin_identity() -> AuthIdentity:
    return AuthIdentity(scopes=frozenset({Scope.ALL}), auth=KeyPair("admin-key", "admin-secret"))
