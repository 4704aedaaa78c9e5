"""Bring authorization table — time-stamped, single-use grants keyed by actor."""

from __future__ import annotations

from teleport.errors import RateLimited


class BringAuthorization:
    """Grants one actor holds for others: requester → grant timestamp.

    Not locked on its own; the owning session serializes access.
    """

    def __init__(self) -> None:
        self._grants: dict[str, float] = {}

    def grant(self, requester: str, now: float, expire_after: float | None = None) -> None:
        """Insert or refresh the grant for ``requester``.

        When ``expire_after`` is given, grants older than it are pruned first.
        """
        if expire_after is not None:
            self._prune(now, expire_after)
        self._grants[requester] = now

    def is_authorized(self, requester: str, now: float, window: float) -> bool:
        ts = self._grants.get(requester)
        return ts is not None and now - ts <= window

    def consume(self, requester: str) -> None:
        self._grants.pop(requester, None)

    def consume_if_authorized(self, requester: str, now: float, window: float) -> float | None:
        """Check and consume in one step. Returns the consumed timestamp."""
        if not self.is_authorized(requester, now, window):
            return None
        return self._grants.pop(requester)

    def restore(self, requester: str, timestamp: float) -> None:
        """Put back a consumed grant unless a newer one arrived meanwhile."""
        current = self._grants.get(requester)
        if current is None or current < timestamp:
            self._grants[requester] = timestamp

    def check_rate_limit(
        self, requester: str, now: float, cooldown: float,
        message: str = "Wait a bit before asking again.",
    ) -> None:
        ts = self._grants.get(requester)
        if ts is not None and now - ts < cooldown:
            raise RateLimited(message)

    def timestamp(self, requester: str) -> float | None:
        return self._grants.get(requester)

    def requesters(self) -> list[str]:
        return sorted(self._grants)

    def _prune(self, now: float, max_age: float) -> None:
        stale = [r for r, ts in self._grants.items() if now - ts > max_age]
        for r in stale:
            del self._grants[r]

    def __len__(self) -> int:
        return len(self._grants)

    def __contains__(self, requester: object) -> bool:
        return requester in self._grants
