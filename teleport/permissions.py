"""Static capability table loaded from config."""

from __future__ import annotations

from typing import Any


class StaticPermissions:
    """Capabilities per actor, with per-world overrides.

    ``teleport.*`` and ``*`` grant every capability under them. A world
    entry adds capabilities inside that world, or takes one away with a
    leading ``-`` (``-teleport.other``). Checks without a world only see
    the global grants.
    """

    def __init__(
        self,
        default: list[str] | None = None,
        actors: dict[str, list[str]] | None = None,
        worlds: dict[str, dict[str, list[str]]] | None = None,
    ) -> None:
        self.default = set(default or [])
        self.actors = {k.lower(): set(v) for k, v in (actors or {}).items()}
        self.worlds = {
            w: {k.lower(): set(v) for k, v in grants.items()}
            for w, grants in (worlds or {}).items()
        }

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> StaticPermissions:
        perm_cfg = config.get("permissions", {})
        return cls(
            default=perm_cfg.get("default", []),
            actors=perm_cfg.get("actors", {}),
            worlds=perm_cfg.get("worlds", {}),
        )

    def grant(self, actor: str, capability: str, world: str | None = None) -> None:
        if world is None:
            self.actors.setdefault(actor.lower(), set()).add(capability)
        else:
            self.worlds.setdefault(world, {}).setdefault(actor.lower(), set()).add(capability)

    def has_capability(self, actor: str, capability: str, world: str | None = None) -> bool:
        granted = self.default | self.actors.get(actor.lower(), set())
        if world is not None:
            entries = self.worlds.get(world, {}).get(actor.lower(), set())
            denied = {e[1:] for e in entries if e.startswith("-")}
            if _matches(denied, capability):
                return False
            granted = granted | {e for e in entries if not e.startswith("-")}
        return _matches(granted, capability)


def _matches(granted: set[str], capability: str) -> bool:
    if "*" in granted or capability in granted:
        return True
    parts = capability.split(".")
    for i in range(1, len(parts)):
        if ".".join(parts[:i]) + ".*" in granted:
            return True
    return False
