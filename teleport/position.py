"""Position value — world name, coordinates and facing."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Position:
    world: str
    x: float
    y: float
    z: float
    pitch: float = 0.0
    yaw: float = 0.0

    def with_orientation(self, pitch: float, yaw: float) -> Position:
        return replace(self, pitch=pitch, yaw=yaw)

    def to_dict(self) -> dict[str, Any]:
        return {
            "world": self.world,
            "x": self.x, "y": self.y, "z": self.z,
            "pitch": self.pitch, "yaw": self.yaw,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(
            world=str(data["world"]),
            x=float(data["x"]), y=float(data["y"]), z=float(data["z"]),
            pitch=float(data.get("pitch", 0.0)),
            yaw=float(data.get("yaw", 0.0)),
        )

    def __str__(self) -> str:
        return f"{self.world}:{self.x:g},{self.y:g},{self.z:g}"
