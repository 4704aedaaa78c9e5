"""Relocation protocol — teleport, call, bring, put and return requests.

Every request follows the same path: authorize, consume any single-use
grant, latch the destination if the session itself must not record the
move, then hand the move to the host's relocator. History is only ever
written by the host's relocation events (see ``on_relocated``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from teleport.config import Settings
from teleport.errors import NoPriorLocation, NotAuthorized, RelocationFailed, TeleportError
from teleport.host import ActorDirectory, PermissionOracle, RelocationEvent, Relocator
from teleport.position import Position
from teleport.session import SessionRegistry

log = logging.getLogger(__name__)

CAP_TELEPORT = "teleport"
CAP_TELEPORT_OTHER = "teleport.other"
CAP_CALL = "call"
CAP_RETURN = "return"
CAP_RETURN_OTHER = "return.other"


class OperationKind(Enum):
    TELEPORT = "teleport"
    BRING = "bring"
    PUT = "put"
    RETURN = "return"


@dataclass(frozen=True, slots=True)
class OperationTraits:
    capture_prior: bool       # report where each target was before the move
    keep_orientation: bool    # target keeps its own pitch/yaw at the destination
    latch_destination: bool   # the move must not be recorded as new history


OPERATION_TRAITS: dict[OperationKind, OperationTraits] = {
    OperationKind.TELEPORT: OperationTraits(capture_prior=True, keep_orientation=False, latch_destination=False),
    OperationKind.BRING: OperationTraits(capture_prior=True, keep_orientation=False, latch_destination=False),
    OperationKind.PUT: OperationTraits(capture_prior=True, keep_orientation=True, latch_destination=False),
    OperationKind.RETURN: OperationTraits(capture_prior=False, keep_orientation=False, latch_destination=True),
}


@dataclass(slots=True)
class Relocation:
    actor: str
    destination: Position
    prior: Position | None = None


@dataclass(slots=True)
class RelocationResult:
    kind: OperationKind
    moved: list[Relocation] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def actors(self) -> list[str]:
        return [r.actor for r in self.moved]


class RelocationProtocol:
    """Validates and performs relocation requests against the session registry."""

    def __init__(
        self,
        registry: SessionRegistry,
        relocator: Relocator,
        directory: ActorDirectory,
        permissions: PermissionOracle,
    ) -> None:
        self.registry = registry
        self.relocator = relocator
        self.directory = directory
        self.permissions = permissions

    @property
    def settings(self) -> Settings:
        return self.registry.settings

    # ── Host notifications ───────────────────────────────────────

    def on_relocated(self, event: RelocationEvent) -> None:
        session = self.registry.get_session(event.actor)
        session.remember_location(event.origin, event.destination)

    def on_respawn(self, actor: str, position: Position) -> None:
        self.registry.get_session(actor).remember_location(position)

    # ── Requests ─────────────────────────────────────────────────

    async def teleport(self, sender: str, targets: list[str], destination: Position) -> RelocationResult:
        self._require(sender, CAP_TELEPORT)
        if any(t != sender for t in targets):
            self._require(sender, CAP_TELEPORT_OTHER)
            self._require(sender, CAP_TELEPORT_OTHER, world=destination.world)
        else:
            self._require(sender, CAP_TELEPORT, world=destination.world)
        result = RelocationResult(OperationKind.TELEPORT)
        await self._relocate_all(result, [(t, destination) for t in targets])
        return result

    async def call(self, sender: str, target: str) -> None:
        """Ask ``target`` to bring ``sender``; rate-limited per target."""
        self._require(sender, CAP_CALL)
        self._require(sender, CAP_CALL, world=self.directory.position_of(target).world)
        with self.registry.locked(sender, target) as (sender_session, target_session):
            sender_session.check_last_teleport_request(target)
            target_session.add_bringable(sender)
        log.info("%s called %s", sender, target)

    async def bring(self, sender: str, targets: list[str]) -> RelocationResult:
        destination = self.directory.position_of(sender)
        result = RelocationResult(OperationKind.BRING)

        if not self.permissions.has_capability(sender, CAP_TELEPORT_OTHER):
            if len(targets) != 1:
                raise NotAuthorized(self.settings.messages.bring_no_perm)
            target = targets[0]
            session = self.registry.get_session(sender)
            granted_at = session.take_bringable(target)
            if granted_at is None:
                log.warning("%s tried to bring %s without a pending call", sender, target)
                raise NotAuthorized(self.settings.messages.bring_no_perm)
            try:
                await self._relocate(result, target, destination)
            except TeleportError:
                session.restore_bringable(target, granted_at)
                raise
            return result

        moves = []
        for target in targets:
            if target == sender:
                continue
            world = self.directory.position_of(target).world
            if world != destination.world and not self.permissions.has_capability(
                sender, CAP_TELEPORT_OTHER, world=world,
            ):
                result.skipped.append(target)
                continue
            moves.append((target, destination))
        await self._relocate_all(result, moves)
        return result

    async def put(self, sender: str, targets: list[str], destination: Position) -> RelocationResult:
        self._require(sender, CAP_TELEPORT_OTHER)
        result = RelocationResult(OperationKind.PUT)
        await self._relocate_all(result, [(t, destination) for t in targets])
        return result

    async def ret(self, sender: str, target: str | None = None) -> RelocationResult:
        """Send ``target`` (default: the sender) back to its last position."""
        actor = target or sender
        self._require(sender, CAP_RETURN)
        if actor != sender:
            self._require(sender, CAP_RETURN_OTHER)

        self.directory.position_of(actor)
        session = self.registry.get_session(actor)
        last = session.pop_last_location()
        if last is None:
            raise NoPriorLocation(self.settings.messages.return_empty)

        result = RelocationResult(OperationKind.RETURN)
        try:
            await self._relocate(result, actor, last)
        except TeleportError:
            session.push_location(last)
            raise
        return result

    # ── Helpers ──────────────────────────────────────────────────

    def _require(self, actor: str, capability: str, world: str | None = None) -> None:
        if not self.permissions.has_capability(actor, capability, world=world):
            log.warning("%s lacks %s (world=%s)", actor, capability, world)
            raise NotAuthorized(self.settings.messages.no_permission)

    async def _relocate_all(self, result: RelocationResult, moves: list[tuple[str, Position]]) -> None:
        # Resolve every target before the first move.
        for actor, _ in moves:
            self.directory.position_of(actor)
        for actor, destination in moves:
            try:
                await self._relocate(result, actor, destination)
            except RelocationFailed:
                result.failed.append(actor)
        if result.failed and not result.moved:
            raise RelocationFailed(f"Could not teleport {', '.join(result.failed)}.")

    async def _relocate(self, result: RelocationResult, actor: str, destination: Position) -> None:
        traits = OPERATION_TRAITS[result.kind]
        prior = None
        if traits.capture_prior or traits.keep_orientation:
            current = self.directory.position_of(actor)
            if traits.capture_prior:
                prior = current
            if traits.keep_orientation:
                destination = destination.with_orientation(current.pitch, current.yaw)

        session = self.registry.get_session(actor)
        if traits.latch_destination:
            session.set_ignore_location(destination)

        if not await self.relocator.relocate(actor, destination):
            if traits.latch_destination:
                session.set_ignore_location(None)
            log.warning("%s of %s to %s failed", result.kind.value, actor, destination)
            raise RelocationFailed(f"Could not teleport {actor}.")

        result.moved.append(Relocation(actor=actor, destination=destination, prior=prior))
        log.info("%s: %s → %s", result.kind.value, actor, destination)
