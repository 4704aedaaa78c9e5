"""Contracts the host environment provides to the teleport core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from teleport.position import Position


@dataclass(frozen=True, slots=True)
class RelocationEvent:
    """An actor moved from ``origin`` to ``destination``."""

    actor: str
    origin: Position
    destination: Position
    cause: str = "command"


@runtime_checkable
class Relocator(Protocol):
    async def relocate(self, actor: str, position: Position) -> bool:
        """Move the actor atomically; False leaves everything unchanged."""
        ...


@runtime_checkable
class PermissionOracle(Protocol):
    def has_capability(self, actor: str, capability: str, world: str | None = None) -> bool:
        ...


@runtime_checkable
class ActorDirectory(Protocol):
    def position_of(self, actor: str) -> Position:
        """Current position; raises TargetUnresolvable for unknown actors."""
        ...

    def find_actor(self, name: str) -> str:
        """Resolve a name to an actor id; raises TargetUnresolvable."""
        ...

    def online_actors(self) -> list[str]:
        ...

    def line_of_sight(self, actor: str) -> Position:
        """Where the actor is looking; raises TargetUnresolvable."""
        ...
