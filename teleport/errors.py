"""Teleport errors — every kind aborts the request without touching session state."""

from __future__ import annotations


class TeleportError(Exception):
    """Base error; ``str(exc)`` is the message shown to the invoking actor."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotAuthorized(TeleportError):
    pass


class RateLimited(TeleportError):
    pass


class NoPriorLocation(TeleportError):
    pass


class TargetUnresolvable(TeleportError):
    pass


class RelocationFailed(TeleportError):
    pass
