"""SQLAlchemy ORM models, dual-dialect (Postgres/SQLite)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .types import GUID, JSONB


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# 1. admin_accounts
# ---------------------------------------------------------------------------
class AdminAccount(Base):
    __tablename__ = "admin_accounts"

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    passhash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    credentials: Mapped[list[Credential]] = relationship(back_populates="account", passive_deletes=True)


# ---------------------------------------------------------------------------
# 2. credentials
# ---------------------------------------------------------------------------
class Credential(Base):
    __tablename__ = "credentials"
    __table_args__ = (UniqueConstraint("api_key", "secret_key", name="uq_credential_key_pair"),)

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=GUID.new)
    # Null for the seeded default credential
    account_id: Mapped[str | None] = mapped_column(
        GUID(), ForeignKey("admin_accounts.id"), nullable=True, index=True
    )
    api_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    secret_key: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    account: Mapped[AdminAccount | None] = relationship(back_populates="credentials")


# ---------------------------------------------------------------------------
# 3. credential_scopes
# ---------------------------------------------------------------------------
class CredentialScope(Base):
    __tablename__ = "credential_scopes"
    __table_args__ = (UniqueConstraint("credential_id", "scope", name="uq_credential_scope"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    credential_id: Mapped[str] = mapped_column(GUID(), ForeignKey("credentials.id"), nullable=False, index=True)
    # A null scope is a placeholder row: the credential exists with no scope.
    scope: Mapped[str | None] = mapped_column(String(64), nullable=True)


# ---------------------------------------------------------------------------
# 4. statements
# ---------------------------------------------------------------------------
class Statement(Base):
    __tablename__ = "statements"

    # Insertion order; doubles as the paging cursor.
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    statement_id: Mapped[str] = mapped_column(GUID(), unique=True, nullable=False)
    registration: Mapped[str | None] = mapped_column(GUID(), nullable=True, index=True)
    verb_iri: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    is_voided: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_voiding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Target of a StatementRef object, voiding or not.
    statement_ref_id: Mapped[str | None] = mapped_column(GUID(), nullable=True, index=True)
    authority_ifi: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    stored: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    payload: Mapped[dict] = mapped_column(JSONB(), nullable=False)


# ---------------------------------------------------------------------------
# 5. statement_to_statement
# ---------------------------------------------------------------------------
class StatementToStatement(Base):
    __tablename__ = "statement_to_statement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ancestor_id: Mapped[str] = mapped_column(GUID(), nullable=False, index=True)
    descendant_id: Mapped[str] = mapped_column(GUID(), nullable=False, index=True)


# ---------------------------------------------------------------------------
# 6. statement_actors / statement_activities
# ---------------------------------------------------------------------------
class StatementActor(Base):
    __tablename__ = "statement_actors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    statement_id: Mapped[str] = mapped_column(GUID(), nullable=False, index=True)
    actor_ifi: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    usage: Mapped[str] = mapped_column(String(20), nullable=False)  # Actor/Object/Authority/...


class StatementActivity(Base):
    __tablename__ = "statement_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    statement_id: Mapped[str] = mapped_column(GUID(), nullable=False, index=True)
    activity_iri: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    usage: Mapped[str] = mapped_column(String(20), nullable=False)  # Object/Parent/Grouping/...


# ---------------------------------------------------------------------------
# 7. actors / activities
# ---------------------------------------------------------------------------
class Actor(Base):
    __tablename__ = "actors"
    __table_args__ = (UniqueConstraint("actor_ifi", "actor_type", name="uq_actor_ifi_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_ifi: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    actor_type: Mapped[str] = mapped_column(String(20), nullable=False)  # Agent/Group
    payload: Mapped[dict] = mapped_column(JSONB(), nullable=False)


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_iri: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    payload: Mapped[dict] = mapped_column(JSONB(), nullable=False)


# ---------------------------------------------------------------------------
# 8. attachments
# ---------------------------------------------------------------------------
class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    statement_id: Mapped[str] = mapped_column(GUID(), nullable=False, index=True)
    sha2: Mapped[str] = mapped_column(String(128), nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)
    content_length: Mapped[int] = mapped_column(Integer, nullable=False)
    contents: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


# ---------------------------------------------------------------------------
# 9. documents
# ---------------------------------------------------------------------------
class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # state/activity_profile/agent_profile
    activity_iri: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    agent_ifi: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    registration: Mapped[str | None] = mapped_column(GUID(), nullable=True)
    document_id: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)
    content_length: Mapped[int] = mapped_column(Integer, nullable=False)
    contents: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
