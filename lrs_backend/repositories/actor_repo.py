"""Actor and activity repository."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Activity, Actor


@runtime_checkable
class ActorRepository(Protocol):
    async def upsert_actor(self, actor_ifi: str, actor_type: str, payload: dict) -> Actor: ...
    async def upsert_activity(self, activity_iri: str, payload: dict) -> Activity: ...
    async def get_actors(self, actor_ifi: str) -> list[Actor]: ...
    async def get_activity(self, activity_iri: str) -> Activity | None: ...


def merge_activity(current: dict, incoming: dict) -> dict:
    """Later definitions win per property; absent properties are kept."""
    merged = {**current, **incoming}
    if "definition" in current or "definition" in incoming:
        merged["definition"] = {**current.get("definition", {}), **incoming.get("definition", {})}
    return merged


class SQLAlchemyActorRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def upsert_actor(self, actor_ifi: str, actor_type: str, payload: dict) -> Actor:
        result = await self._session.execute(
            select(Actor).where(Actor.actor_ifi == actor_ifi, Actor.actor_type == actor_type)
        )
        actor = result.scalar_one_or_none()
        if actor is None:
            actor = Actor(actor_ifi=actor_ifi, actor_type=actor_type, payload=payload)
            self._session.add(actor)
        elif actor.payload != payload:
            actor.payload = payload
        await self._session.flush()
        return actor

    async def upsert_activity(self, activity_iri: str, payload: dict) -> Activity:
        activity = await self.get_activity(activity_iri)
        if activity is None:
            activity = Activity(activity_iri=activity_iri, payload=payload)
            self._session.add(activity)
        else:
            merged = merge_activity(activity.payload, payload)
            if merged != activity.payload:
                activity.payload = merged
        await self._session.flush()
        return activity

    async def get_actors(self, actor_ifi: str) -> list[Actor]:
        result = await self._session.execute(
            select(Actor).where(Actor.actor_ifi == actor_ifi).order_by(Actor.id)
        )
        return list(result.scalars().all())

    async def get_activity(self, activity_iri: str) -> Activity | None:
        result = await self._session.execute(
            select(Activity).where(Activity.activity_iri == activity_iri)
        )
        return result.scalar_one_or_none()
