"""Statement insert and query inputs."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from lrs_backend.inputs.actor import actor_ifi, actor_type, parse_agent_param
from lrs_backend.util.statement import (
    is_voiding_statement,
    parse_timestamp,
    statement_ref_id,
)

_CONTEXT_ACTIVITY_USAGES = {
    "parent": "Parent",
    "grouping": "Grouping",
    "category": "Category",
    "other": "Other",
}


@dataclass(frozen=True)
class StatementAttachment:
    """An attachment body submitted alongside a statement batch."""

    sha2: str
    content_type: str
    contents: bytes

    @property
    def content_length(self) -> int:
        return len(self.contents)


@dataclass(frozen=True)
class ActorInput:
    actor_ifi: str
    actor_type: str
    payload: dict
    usage: str


@dataclass(frozen=True)
class ActivityInput:
    activity_iri: str
    payload: dict
    usage: str


@dataclass(frozen=True)
class StatementInsertInput:
    statement_id: str
    statement: dict
    verb_iri: str
    stored: datetime
    registration: str | None = None
    authority_ifi: str | None = None
    statement_ref_id: str | None = None
    is_voiding: bool = False
    actors: tuple[ActorInput, ...] = ()
    activities: tuple[ActivityInput, ...] = ()
    attachments: tuple[StatementAttachment, ...] = ()
    descendant_ids: tuple[str, ...] = ()


def _actor_inputs(actor: Mapping[str, Any] | None, usage: str) -> list[ActorInput]:
    if not actor:
        return []
    ifi = actor_ifi(actor)
    if ifi is None:
        # Anonymous groups are indexed through their members only.
        return [
            item
            for member in actor.get("member") or []
            for item in _actor_inputs(member, usage)
        ]
    return [ActorInput(actor_ifi=ifi, actor_type=actor_type(actor), payload=dict(actor), usage=usage)]


def _activity_input(activity: Mapping[str, Any], usage: str) -> ActivityInput:
    payload = {"objectType": "Activity", **activity}
    return ActivityInput(activity_iri=activity["id"], payload=payload, usage=usage)


def _object_inputs(
    obj: Mapping[str, Any] | None, usage: str
) -> tuple[list[ActorInput], list[ActivityInput]]:
    if not obj:
        return [], []
    object_type = obj.get("objectType", "Activity")
    if object_type in ("Agent", "Group"):
        return _actor_inputs(obj, usage), []
    if object_type == "Activity":
        return [], [_activity_input(obj, usage)]
    return [], []


def _context_inputs(
    context: Mapping[str, Any] | None,
) -> tuple[list[ActorInput], list[ActivityInput]]:
    if not context:
        return [], []
    actors = _actor_inputs(context.get("instructor"), "Instructor")
    actors += _actor_inputs(context.get("team"), "Team")
    activities = []
    for key, usage in _CONTEXT_ACTIVITY_USAGES.items():
        entries = (context.get("contextActivities") or {}).get(key) or []
        if isinstance(entries, Mapping):
            entries = [entries]
        activities += [_activity_input(entry, usage) for entry in entries]
    return actors, activities


def statement_insert_input(statement: Mapping[str, Any]) -> StatementInsertInput:
    """Build the insert input for a statement already passed through prepare_statement."""
    actors = _actor_inputs(statement.get("actor"), "Actor")
    object_actors, activities = _object_inputs(statement.get("object"), "Object")
    actors += object_actors

    context_actors, context_activities = _context_inputs(statement.get("context"))
    actors += context_actors
    activities += context_activities

    obj = statement.get("object") or {}
    if obj.get("objectType") == "SubStatement":
        actors += _actor_inputs(obj.get("actor"), "SubActor")
        sub_actors, sub_activities = _object_inputs(obj.get("object"), "SubObject")
        actors += sub_actors
        activities += sub_activities
        sub_ctx_actors, sub_ctx_activities = _context_inputs(obj.get("context"))
        actors += sub_ctx_actors
        activities += sub_ctx_activities

    authority = statement.get("authority")
    actors += _actor_inputs(authority, "Authority")

    registration = (statement.get("context") or {}).get("registration")
    return StatementInsertInput(
        statement_id=statement["id"],
        statement=dict(statement),
        verb_iri=statement["verb"]["id"],
        stored=parse_timestamp(statement["stored"]),
        registration=registration.lower() if registration else None,
        authority_ifi=actor_ifi(authority),
        statement_ref_id=statement_ref_id(statement),
        is_voiding=is_voiding_statement(statement),
        actors=tuple(actors),
        activities=tuple(activities),
    )


def _attachment_hashes(statement: Mapping[str, Any]) -> set[str]:
    return {a["sha2"] for a in statement.get("attachments") or [] if a.get("sha2")}


def add_attachment_insert_inputs(
    inputs: Iterable[StatementInsertInput],
    attachments: Sequence[StatementAttachment],
) -> list[StatementInsertInput]:
    """Attach each submitted body to every statement that declares its sha2."""
    result = []
    for stmt_input in inputs:
        hashes = _attachment_hashes(stmt_input.statement)
        matched = tuple(a for a in attachments if a.sha2 in hashes)
        result.append(dataclasses.replace(stmt_input, attachments=matched) if matched else stmt_input)
    return result


def add_descendant_insert_inputs(
    stmt_input: StatementInsertInput, descendant_ids: Iterable[str]
) -> StatementInsertInput:
    return dataclasses.replace(stmt_input, descendant_ids=tuple(descendant_ids))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

# Request parameters carried over into a "more" link.
_MORE_LINK_PARAMS = (
    "agent",
    "verb",
    "activity",
    "registration",
    "related_activities",
    "related_agents",
    "since",
    "until",
    "limit",
    "ascending",
    "attachments",
    "format",
)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


@dataclass(frozen=True)
class StatementQueryInput:
    statement_id: str | None = None
    voided_statement_id: str | None = None
    agent_ifi: str | None = None
    verb_iri: str | None = None
    activity_iri: str | None = None
    registration: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    related_agents: bool = False
    related_activities: bool = False
    ascending: bool = False
    attachments: bool = False
    limit: int = 50
    from_seq: int | None = None
    authority_ifi: str | None = None
    more_url_prefix: str = ""
    link_params: dict = field(default_factory=dict)

    @property
    def is_single(self) -> bool:
        return self.statement_id is not None or self.voided_statement_id is not None


def statement_query_input(
    params: Mapping[str, Any], authority_ifi: str | None = None
) -> StatementQueryInput:
    """Build a query input from request params after limit/prefix normalization."""
    agent = parse_agent_param(params.get("agent"))
    since = params.get("since")
    until = params.get("until")
    from_seq = params.get("from")
    statement_id = params.get("statementId")
    voided_id = params.get("voidedStatementId")
    registration = params.get("registration")
    link_params = {
        key: params[key] for key in _MORE_LINK_PARAMS if params.get(key) not in (None, "")
    }
    return StatementQueryInput(
        statement_id=statement_id.lower() if statement_id else None,
        voided_statement_id=voided_id.lower() if voided_id else None,
        # An agent without an IFI matches nothing rather than everything.
        agent_ifi=(actor_ifi(agent) or "") if agent else None,
        verb_iri=params.get("verb") or None,
        activity_iri=params.get("activity") or None,
        registration=registration.lower() if registration else None,
        since=parse_timestamp(since) if since else None,
        until=parse_timestamp(until) if until else None,
        related_agents=_as_bool(params.get("related_agents", False)),
        related_activities=_as_bool(params.get("related_activities", False)),
        ascending=_as_bool(params.get("ascending", False)),
        attachments=_as_bool(params.get("attachments", False)),
        limit=int(params["limit"]),
        from_seq=int(from_seq) if from_seq not in (None, "") else None,
        authority_ifi=authority_ifi,
        more_url_prefix=params.get("more_url_prefix", ""),
        link_params=link_params,
    )
