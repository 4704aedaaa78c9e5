"""Configuration — YAML file → Settings + message templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DEFAULT_BRING_WINDOW = 300.0    # seconds a call stays acceptable
DEFAULT_CALL_COOLDOWN = 30.0    # seconds between calls to the same target
DEFAULT_HISTORY_CAPACITY = 10


@dataclass(slots=True)
class Messages:
    call_sender: str = "Teleport request sent."
    call_target: str = "**TELEPORT** %s requests a teleport! Use /bring <name> to accept."
    call_too_soon: str = "Wait a bit before asking again."
    bring_sender: str = "Player teleported."
    bring_target: str = "Your teleport request to %s was accepted."
    bring_no_perm: str = (
        "That person didn't request a teleport (recently) "
        "and you don't have permission to teleport anyone."
    )
    return_done: str = "You've been returned."
    return_empty: str = "There's no past location in your history."
    no_permission: str = "You don't have permission for this command."

    @classmethod
    def from_config(cls, data: dict[str, Any]) -> Messages:
        call = data.get("call", {})
        bring = data.get("bring", {})
        ret = data.get("return", {})
        base = cls()
        return cls(
            call_sender=call.get("sender", base.call_sender),
            call_target=call.get("target", base.call_target),
            call_too_soon=call.get("too_soon", base.call_too_soon),
            bring_sender=bring.get("sender", base.bring_sender),
            bring_target=bring.get("target", base.bring_target),
            bring_no_perm=bring.get("no_perm", base.bring_no_perm),
            return_done=ret.get("done", base.return_done),
            return_empty=ret.get("empty", base.return_empty),
            no_permission=data.get("no_permission", base.no_permission),
        )


@dataclass(slots=True)
class Settings:
    bring_window: float = DEFAULT_BRING_WINDOW
    call_cooldown: float = DEFAULT_CALL_COOLDOWN
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    messages: Messages = field(default_factory=Messages)

    def __post_init__(self) -> None:
        if self.bring_window < 0:
            raise ValueError(f"bring_window must be >= 0, got {self.bring_window}")
        if self.call_cooldown < 0:
            raise ValueError(f"call_cooldown must be >= 0, got {self.call_cooldown}")
        if self.history_capacity < 1:
            raise ValueError(f"history_capacity must be >= 1, got {self.history_capacity}")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Settings:
        tp_cfg = config.get("teleport", {})
        return cls(
            bring_window=float(tp_cfg.get("bring_window", DEFAULT_BRING_WINDOW)),
            call_cooldown=float(tp_cfg.get("call_cooldown", DEFAULT_CALL_COOLDOWN)),
            history_capacity=int(tp_cfg.get("history_capacity", DEFAULT_HISTORY_CAPACITY)),
            messages=Messages.from_config(config.get("messages", {})),
        )


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        log.warning("Config %s is empty, using defaults", path)
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data
