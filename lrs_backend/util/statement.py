"""Statement normalization and query-parameter preparation."""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from typing import Any, Mapping

from lrs_backend.auth.credentials import AuthIdentity
from lrs_backend.config import Settings
from lrs_backend.db.types import GUID

XAPI_VERSION = "1.0.0"
VOIDED_VERB = "http://adlnet.gov/expapi/verbs/voided"

# Only these take part in equivalence; id, stored, timestamp, version and authority do not.
_COMPARED_PROPERTIES = ("actor", "verb", "object", "result", "context", "attachments")


def format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def build_authority(settings: Settings, identity: AuthIdentity) -> dict:
    return {
        "objectType": "Agent",
        "account": {"homePage": settings.authority_url, "name": identity.username},
    }


def prepare_statement(
    statement: Mapping[str, Any],
    *,
    authority: dict | None = None,
    now: datetime | None = None,
) -> dict:
    """Fill in the properties the LRS owns.

    ``id``, ``timestamp`` and ``version`` are kept when present; ``stored`` is
    always the ingest time and ``authority`` is always the given credential
    agent when one is passed.
    """
    now = now or datetime.now(UTC)
    prepared = copy.deepcopy(dict(statement))
    stored = format_timestamp(now)

    prepared["id"] = str(prepared.get("id") or GUID.new()).lower()
    prepared["stored"] = stored
    prepared.setdefault("timestamp", stored)
    prepared.setdefault("version", XAPI_VERSION)
    # The caller's credential replaces any authority the client sent.
    if authority is not None:
        prepared["authority"] = authority
    return prepared


def statements_equivalent(left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    return all(left.get(key) == right.get(key) for key in _COMPARED_PROPERTIES)


def statement_ref_id(statement: Mapping[str, Any]) -> str | None:
    obj = statement.get("object") or {}
    if obj.get("objectType") == "StatementRef" and obj.get("id"):
        return str(obj["id"]).lower()
    return None


def is_voiding_statement(statement: Mapping[str, Any]) -> bool:
    verb = statement.get("verb") or {}
    return verb.get("id") == VOIDED_VERB and statement_ref_id(statement) is not None


def add_more_url_prefix(settings: Settings, params: Mapping[str, Any]) -> dict:
    return {**params, "more_url_prefix": settings.more_url_prefix}


def ensure_default_max_limit(settings: Settings, params: Mapping[str, Any]) -> dict:
    """Absent or zero limit means the default; any other limit is capped at the max."""
    limit = params.get("limit")
    limit = int(limit) if limit not in (None, "") else 0
    if limit <= 0:
        limit = settings.stmt_get_default
    return {**params, "limit": min(limit, settings.stmt_get_max)}
