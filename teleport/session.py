"""Teleport sessions — per-actor state + the process-wide registry."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import ExitStack, contextmanager
from typing import Callable, Iterator

from teleport.bring import BringAuthorization
from teleport.config import Settings
from teleport.history import LocationHistory
from teleport.position import Position

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class TeleportSession:
    """Teleport state for one actor.

    ``bringable`` holds actors that called this one and may be brought
    without privilege. ``requests`` holds this actor's own outgoing call
    timers, keyed by call target. Every method takes the session lock.
    """

    def __init__(self, actor: str, settings: Settings, clock: Clock = time.monotonic) -> None:
        self.actor = actor
        self.settings = settings
        self.clock = clock
        self.lock = threading.RLock()
        self.history = LocationHistory(settings.history_capacity)
        self.bringable = BringAuthorization()
        self.requests = BringAuthorization()
        self._ignore_location: Position | None = None

    # ── Location history ─────────────────────────────────────────

    def remember_location(self, position: Position, destination: Position | None = None) -> bool:
        """Record ``position`` unless the ignore latch matches.

        The latch is compared against ``destination`` when given (the target
        of the relocation being reported), else against ``position``.
        Returns True if the position was pushed.
        """
        key = destination if destination is not None else position
        with self.lock:
            if self._ignore_location is not None and self._ignore_location == key:
                log.debug("Ignoring self-initiated relocation of %s to %s", self.actor, key)
                self._ignore_location = None
                return False
            self.history.push(position)
            return True

    def push_location(self, position: Position) -> None:
        with self.lock:
            self.history.push(position)

    def pop_last_location(self) -> Position | None:
        with self.lock:
            return self.history.pop()

    def set_ignore_location(self, position: Position | None) -> None:
        with self.lock:
            self._ignore_location = position

    def get_ignore_location(self) -> Position | None:
        with self.lock:
            return self._ignore_location

    # ── Bring grants ─────────────────────────────────────────────

    def add_bringable(self, requester: str) -> None:
        with self.lock:
            self.bringable.grant(requester, self.clock(), expire_after=self.settings.bring_window)

    def is_bringable(self, requester: str) -> bool:
        with self.lock:
            return self.bringable.is_authorized(requester, self.clock(), self.settings.bring_window)

    def take_bringable(self, requester: str) -> float | None:
        """Atomically check and consume the grant for ``requester``."""
        with self.lock:
            return self.bringable.consume_if_authorized(
                requester, self.clock(), self.settings.bring_window,
            )

    def restore_bringable(self, requester: str, timestamp: float) -> None:
        with self.lock:
            self.bringable.restore(requester, timestamp)

    def check_last_teleport_request(self, target: str) -> None:
        """Rate-limit calls to ``target``; records a new timer when allowed."""
        with self.lock:
            now = self.clock()
            self.requests.check_rate_limit(
                target, now, self.settings.call_cooldown,
                message=self.settings.messages.call_too_soon,
            )
            self.requests.grant(target, now, expire_after=self.settings.call_cooldown)

    def apply_settings(self, settings: Settings) -> None:
        with self.lock:
            self.settings = settings
            self.history.capacity = settings.history_capacity


class SessionRegistry:
    """Actor id → TeleportSession, created on first access."""

    def __init__(self, settings: Settings | None = None, clock: Clock = time.monotonic) -> None:
        self.settings = settings or Settings()
        self.clock = clock
        self._sessions: dict[str, TeleportSession] = {}
        self._lock = threading.Lock()

    def get_session(self, actor: str) -> TeleportSession:
        with self._lock:
            session = self._sessions.get(actor)
            if session is None:
                session = TeleportSession(actor, self.settings, self.clock)
                self._sessions[actor] = session
                log.debug("Created teleport session for %s", actor)
            return session

    def discard(self, actor: str) -> None:
        with self._lock:
            if self._sessions.pop(actor, None) is not None:
                log.debug("Dropped teleport session for %s", actor)

    def apply_settings(self, settings: Settings) -> None:
        with self._lock:
            self.settings = settings
            sessions = list(self._sessions.values())
        for session in sessions:
            session.apply_settings(settings)
        log.info("Applied teleport settings to %d sessions", len(sessions))

    @contextmanager
    def locked(self, *actors: str) -> Iterator[list[TeleportSession]]:
        """Hold several sessions' locks, acquired in sorted actor order.

        Yields the sessions in the order the actors were given.
        """
        sessions = {actor: self.get_session(actor) for actor in actors}
        with ExitStack() as stack:
            for actor in sorted(sessions):
                stack.enter_context(sessions[actor].lock)
            yield [sessions[actor] for actor in actors]

    def actors(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def __contains__(self, actor: object) -> bool:
        with self._lock:
            return actor in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
