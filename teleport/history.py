"""Bounded per-actor location history."""

from __future__ import annotations

from teleport.position import Position


class LocationHistory:
    """Most-recent-last stack of prior positions.

    Pushing past ``capacity`` drops the oldest entry first.
    """

    def __init__(self, capacity: int = 10) -> None:
        self._entries: list[Position] = []
        self._capacity = 1
        self.capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        if value < 1:
            raise ValueError(f"history capacity must be >= 1, got {value}")
        self._capacity = value
        self._trim()

    def push(self, position: Position) -> None:
        self._entries.append(position)
        self._trim()

    def pop(self) -> Position | None:
        """Remove and return the latest position, or None when empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def _trim(self) -> None:
        while len(self._entries) > self._capacity:
            self._entries.pop(0)

    def __len__(self) -> int:
        return len(self._entries)
