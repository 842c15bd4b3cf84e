"""
Actors: the effectful side of an application.

Rules stay pure. When something needs I/O, a rule emits a fact describing
the need, an actor observes the new state, performs the work, and feeds
results back as events on a later step.
"""

from __future__ import annotations

import logging
from typing import Any

from .engine import LogicEngine
from .errors import ActorError
from .protocol import State

logger = logging.getLogger(__name__)


class Actor:
    """Base class for actors. Override the hooks you need."""

    def __init__(self, id: str, description: str = ""):
        self.id = id
        self.description = description

    def on_start(self, engine: LogicEngine) -> None:
        pass

    def on_state_change(self, state: State, engine: LogicEngine) -> None:
        pass

    def on_stop(self) -> None:
        pass


class ActorManager:
    """Tracks actors and their active/inactive lifecycle against one engine."""

    def __init__(self, engine: LogicEngine | None = None):
        self._actors: dict[str, Actor] = {}
        self._active: list[str] = []
        self._engine = engine

    def register(self, actor: Actor) -> None:
        if actor.id in self._actors:
            raise ActorError(f'Actor with id "{actor.id}" already registered')
        self._actors[actor.id] = actor

    def unregister(self, actor_id: str) -> None:
        if actor_id in self._active:
            raise ActorError(f'Cannot unregister active actor "{actor_id}". Stop it first.')
        self._actors.pop(actor_id, None)

    def attach_engine(self, engine: LogicEngine) -> None:
        self._engine = engine

    def _get(self, actor_id: str) -> Actor:
        actor = self._actors.get(actor_id)
        if actor is None:
            raise ActorError(f'Actor "{actor_id}" not found')
        return actor

    def start(self, actor_id: str) -> None:
        actor = self._get(actor_id)
        if actor_id in self._active:
            raise ActorError(f'Actor "{actor_id}" is already started')
        if self._engine is None:
            raise ActorError("Actor manager not attached to an engine")

        self._active.append(actor_id)
        logger.debug(f"Starting actor {actor_id!r}")
        actor.on_start(self._engine)

    def stop(self, actor_id: str) -> None:
        actor = self._get(actor_id)
        if actor_id not in self._active:
            return

        self._active.remove(actor_id)
        logger.debug(f"Stopping actor {actor_id!r}")
        actor.on_stop()

    def start_all(self) -> None:
        for actor_id in list(self._actors):
            if actor_id not in self._active:
                self.start(actor_id)

    def stop_all(self) -> None:
        for actor_id in list(self._active):
            self.stop(actor_id)

    def notify_state_change(self, state: State) -> None:
        """Hand ``state`` to every active actor, in start order."""
        if self._engine is None:
            return
        for actor_id in list(self._active):
            self._actors[actor_id].on_state_change(state, self._engine)

    def get_actor_ids(self) -> list[str]:
        return list(self._actors)

    def get_active_actor_ids(self) -> list[str]:
        return list(self._active)

    def is_active(self, actor_id: str) -> bool:
        return actor_id in self._active

    def describe(self) -> list[dict[str, Any]]:
        return [
            {"id": a.id, "description": a.description, "active": a.id in self._active}
            for a in self._actors.values()
        ]
