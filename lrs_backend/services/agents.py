"""Agent (Person) and activity lookups."""

from __future__ import annotations

from typing import Any, Mapping

from ..auth.credentials import AuthIdentity
from ..inputs.actor import (
    activity_query_input,
    actor_ifi,
    agent_query_input,
    ifi_to_person_property,
)
from ..repositories.actor_repo import SQLAlchemyActorRepository
from ..results import Err, Result
from .base import TransactionalService


def _add_unique(values: list, value: Any) -> None:
    if value is not None and value not in values:
        values.append(value)


def build_person(agents: list[dict]) -> dict:
    """Fold agent objects into an xAPI Person with list-valued properties."""
    person: dict[str, Any] = {"objectType": "Person"}
    for agent in agents:
        if agent.get("name"):
            _add_unique(person.setdefault("name", []), agent["name"])
        ifi = actor_ifi(agent)
        if ifi is not None:
            prop, value = ifi_to_person_property(ifi)
            _add_unique(person.setdefault(prop, []), value)
    return person


class AgentInfoService(TransactionalService):
    async def get_person(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]:
        query = self._parse_input("get_person", lambda: agent_query_input(params))
        if isinstance(query, Err):
            return query

        async def body(session):
            stored = []
            if query.agent_ifi is not None:
                actors = await SQLAlchemyActorRepository(session).get_actors(query.agent_ifi)
                stored = [actor.payload for actor in actors]
            return {"person": build_person(stored or [query.agent])}

        return await self._run("get_person", body)

    async def get_activity(self, identity: AuthIdentity | None, params: Mapping[str, Any]) -> Result[dict]:
        query = self._parse_input("get_activity", lambda: activity_query_input(params))
        if isinstance(query, Err):
            return query

        async def body(session):
            activity = await SQLAlchemyActorRepository(session).get_activity(query.activity_iri)
            return {"activity": activity.payload} if activity is not None else {}

        return await self._run("get_activity", body)
