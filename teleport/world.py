"""In-memory world — online actors, their positions, relocation events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from teleport.errors import TargetUnresolvable
from teleport.host import RelocationEvent
from teleport.position import Position

log = logging.getLogger(__name__)

RelocationListener = Callable[[RelocationEvent], None]
RespawnListener = Callable[[str, Position], None]
QuitListener = Callable[[str], None]


@dataclass(slots=True)
class Actor:
    id: str
    name: str
    position: Position
    looking_at: Position | None = None
    messages: list[str] = field(default_factory=list)


class World:
    """Online actors keyed by lowercase name, plus the set of loaded worlds."""

    def __init__(self, worlds: list[str] | None = None) -> None:
        self.worlds: set[str] = set(worlds or [])
        self.actors: dict[str, Actor] = {}
        self._relocation_listeners: list[RelocationListener] = []
        self._respawn_listeners: list[RespawnListener] = []
        self._quit_listeners: list[QuitListener] = []

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> World:
        worlds = config.get("worlds") or ["world"]
        return cls([str(w) for w in worlds])

    # ── Listeners ────────────────────────────────────────────────

    def add_relocation_listener(self, listener: RelocationListener) -> None:
        self._relocation_listeners.append(listener)

    def add_respawn_listener(self, listener: RespawnListener) -> None:
        self._respawn_listeners.append(listener)

    def add_quit_listener(self, listener: QuitListener) -> None:
        self._quit_listeners.append(listener)

    # ── Presence ─────────────────────────────────────────────────

    def join(self, name: str, position: Position) -> Actor:
        if position.world not in self.worlds:
            raise TargetUnresolvable(f"Unknown world: {position.world}")
        actor = Actor(id=name.lower(), name=name, position=position)
        self.actors[actor.id] = actor
        log.info("%s joined at %s", name, position)
        return actor

    def quit(self, actor_id: str) -> None:
        actor = self.actors.pop(actor_id, None)
        if actor is None:
            return
        for listener in self._quit_listeners:
            listener(actor_id)
        log.info("%s left", actor.name)

    def online_actors(self) -> list[str]:
        return sorted(self.actors)

    def get_actor(self, actor_id: str) -> Actor:
        actor = self.actors.get(actor_id)
        if actor is None:
            raise TargetUnresolvable(f"{actor_id} is not online.")
        return actor

    # ── Lookups ──────────────────────────────────────────────────

    def position_of(self, actor_id: str) -> Position:
        return self.get_actor(actor_id).position

    def line_of_sight(self, actor_id: str) -> Position:
        target = self.get_actor(actor_id).looking_at
        if target is None:
            raise TargetUnresolvable("No block in sight!")
        return target

    def find_actor(self, name: str) -> str:
        """Exact name first, then a unique prefix."""
        query = name.lower()
        if query in self.actors:
            return query
        matches = [a for a in self.actors if a.startswith(query)]
        if not matches:
            raise TargetUnresolvable("No players matched query.")
        if len(matches) > 1:
            raise TargetUnresolvable("More than one player found! Use @<name> for exact matching.")
        return matches[0]

    def match_actors(self, query: str) -> list[str]:
        """``*`` matches everyone online, ``@name`` only an exact name."""
        if query == "*":
            if not self.actors:
                raise TargetUnresolvable("No players matched query.")
            return self.online_actors()
        if query.startswith("@"):
            exact = query[1:].lower()
            if exact not in self.actors:
                raise TargetUnresolvable("No players matched query.")
            return [exact]
        return [self.find_actor(query)]

    # ── Movement ─────────────────────────────────────────────────

    async def relocate(self, actor_id: str, position: Position) -> bool:
        actor = self.actors.get(actor_id)
        if actor is None or position.world not in self.worlds:
            return False
        event = RelocationEvent(actor=actor_id, origin=actor.position, destination=position)
        actor.position = position
        for listener in self._relocation_listeners:
            listener(event)
        return True

    def respawn(self, actor_id: str, spawn: Position) -> None:
        """Respawn at ``spawn``; listeners see where the actor died."""
        actor = self.get_actor(actor_id)
        died_at = actor.position
        actor.position = spawn
        for listener in self._respawn_listeners:
            listener(actor_id, died_at)

    def tell(self, actor_id: str, text: str) -> None:
        actor = self.actors.get(actor_id)
        if actor is None:
            return
        actor.messages.append(text)
        log.debug("→ %s: %s", actor.name, text)
