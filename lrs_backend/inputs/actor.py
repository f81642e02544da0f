"""Agent, group and activity identification, plus agent/activity query inputs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping


def parse_agent_param(value: Any) -> dict | None:
    """Accept an agent as a mapping or as the JSON string a query string carries."""
    if value is None or value == "":
        return None
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (str, bytes)):
        parsed = json.loads(value)
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"Agent parameter is not a JSON object: {value!r}")


def actor_ifi(actor: Mapping[str, Any] | None) -> str | None:
    """Return the inverse functional identifier of an agent or identified group."""
    if not actor:
        return None
    if actor.get("mbox"):
        return f"mbox::{actor['mbox']}"
    if actor.get("mbox_sha1sum"):
        return f"mbox_sha1sum::{actor['mbox_sha1sum']}"
    if actor.get("openid"):
        return f"openid::{actor['openid']}"
    account = actor.get("account")
    if account and account.get("name") and account.get("homePage"):
        return f"account::{account['name']}@{account['homePage']}"
    return None


def actor_type(actor: Mapping[str, Any]) -> str:
    return "Group" if actor.get("objectType") == "Group" else "Agent"


def ifi_to_person_property(ifi: str) -> tuple[str, Any]:
    """Split a stored IFI back into its xAPI property name and value."""
    kind, _, value = ifi.partition("::")
    if kind == "account":
        name, _, home_page = value.rpartition("@")
        return "account", {"homePage": home_page, "name": name}
    return kind, value


@dataclass(frozen=True)
class AgentQueryInput:
    agent: dict
    agent_ifi: str | None


@dataclass(frozen=True)
class ActivityQueryInput:
    activity_iri: str


def agent_query_input(params: Mapping[str, Any]) -> AgentQueryInput:
    agent = parse_agent_param(params.get("agent")) or {}
    return AgentQueryInput(agent=agent, agent_ifi=actor_ifi(agent))


def activity_query_input(params: Mapping[str, Any]) -> ActivityQueryInput:
    return ActivityQueryInput(activity_iri=params["activityId"])
