"""Document (state / activity profile / agent profile) inputs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from lrs_backend.inputs.actor import actor_ifi, parse_agent_param
from lrs_backend.util.statement import parse_timestamp

STATE = "state"
ACTIVITY_PROFILE = "activity_profile"
AGENT_PROFILE = "agent_profile"

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class DocumentBody:
    """Document contents as received from or returned to the transport."""

    contents: bytes
    content_type: str = "application/octet-stream"

    @property
    def content_length(self) -> int:
        return len(self.contents)

    @property
    def is_json(self) -> bool:
        return self.content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE

    def json_object(self) -> dict | None:
        """Decode the contents as a JSON object, or None if they are not one."""
        if not self.is_json:
            return None
        try:
            value = json.loads(self.contents)
        except (ValueError, UnicodeDecodeError):
            return None
        return value if isinstance(value, dict) else None


@dataclass(frozen=True)
class DocumentKey:
    kind: str
    document_id: str
    activity_iri: str | None = None
    agent_ifi: str | None = None
    registration: str | None = None


@dataclass(frozen=True)
class DocumentIdsInput:
    kind: str
    activity_iri: str | None = None
    agent_ifi: str | None = None
    registration: str | None = None
    since: datetime | None = None


@dataclass(frozen=True)
class DocumentMultiInput:
    activity_iri: str
    agent_ifi: str
    registration: str | None = None


def _agent_ifi(params: Mapping[str, Any]) -> str | None:
    agent = parse_agent_param(params.get("agent"))
    return actor_ifi(agent) if agent else None


def _registration(params: Mapping[str, Any]) -> str | None:
    registration = params.get("registration")
    return registration.lower() if registration else None


def _kind(params: Mapping[str, Any]) -> str:
    if "stateId" in params or ("activityId" in params and "agent" in params):
        return STATE
    if "activityId" in params:
        return ACTIVITY_PROFILE
    if "agent" in params:
        return AGENT_PROFILE
    raise ValueError("Document params need an activityId, an agent, or both")


def document_input(params: Mapping[str, Any]) -> DocumentKey:
    """Key for a single document: stateId or profileId plus its context."""
    kind = _kind(params)
    if kind == STATE:
        return DocumentKey(
            kind=STATE,
            document_id=params["stateId"],
            activity_iri=params["activityId"],
            agent_ifi=_agent_ifi(params),
            registration=_registration(params),
        )
    if kind == ACTIVITY_PROFILE:
        return DocumentKey(
            kind=ACTIVITY_PROFILE,
            document_id=params["profileId"],
            activity_iri=params["activityId"],
        )
    return DocumentKey(
        kind=AGENT_PROFILE,
        document_id=params["profileId"],
        agent_ifi=_agent_ifi(params),
    )


def document_ids_input(params: Mapping[str, Any]) -> DocumentIdsInput:
    since = params.get("since")
    kind = _kind(params)
    return DocumentIdsInput(
        kind=kind,
        activity_iri=params.get("activityId") if kind != AGENT_PROFILE else None,
        agent_ifi=_agent_ifi(params) if kind != ACTIVITY_PROFILE else None,
        registration=_registration(params) if kind == STATE else None,
        since=parse_timestamp(since) if since else None,
    )


def document_multi_input(params: Mapping[str, Any]) -> DocumentMultiInput:
    """All state documents of one activity/agent (and optional registration)."""
    return DocumentMultiInput(
        activity_iri=params["activityId"],
        agent_ifi=_agent_ifi(params) or "",
        registration=_registration(params),
    )
