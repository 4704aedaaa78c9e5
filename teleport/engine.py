"""Teleport engine — boot sequence, command dispatcher, config reload."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Any, Awaitable, Callable

from teleport import commands
from teleport.config import Settings, load_config
from teleport.errors import TeleportError
from teleport.permissions import StaticPermissions
from teleport.relocation import RelocationProtocol
from teleport.session import SessionRegistry
from teleport.world import World

log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

CommandHandler = Callable[["Engine", str, str], Awaitable[None]]


class Engine:
    """Owns the world, the session registry and the relocation protocol."""

    def __init__(self, config_path: str | Path) -> None:
        self.config_path = Path(config_path)
        self.config: dict[str, Any] = load_config(self.config_path)
        self.settings = Settings.from_config(self.config)

        self.world = World.from_config(self.config)
        self.permissions = StaticPermissions.from_config(self.config)
        self.registry = SessionRegistry(self.settings)
        self.protocol = RelocationProtocol(
            self.registry, relocator=self.world, directory=self.world,
            permissions=self.permissions,
        )

        self.world.add_relocation_listener(self.protocol.on_relocated)
        self.world.add_respawn_listener(self.protocol.on_respawn)
        self.world.add_quit_listener(self.registry.discard)

        # Command registry: command_name → handler coroutine
        self.cmd_handlers: dict[str, CommandHandler] = {}
        self.cmd_aliases: dict[str, str] = {}  # alias → command_name
        commands.register(self)

        self._running = False
        self._watcher_task: asyncio.Task | None = None

    # ── Boot sequence ────────────────────────────────────────────

    async def boot(self) -> None:
        log.info("=== Teleport engine booting: %s ===", self.config.get("name", "teleport"))

        api_cfg = self.config.get("api", {})
        if api_cfg.get("enabled", False):
            from teleport.api import start_api
            await start_api(self, host=api_cfg.get("host", "127.0.0.1"), port=api_cfg.get("port", 8080))

        if self.config.get("dev", {}).get("hot_reload", False):
            from teleport.watcher import start_watcher
            self._watcher_task = await start_watcher(self.config_path, self)

        self._running = True
        log.info("=== Boot complete: %d cmds, %d worlds ===",
                 len(self.cmd_handlers), len(self.world.worlds))

    async def shutdown(self) -> None:
        log.info("Shutting down...")
        self._running = False

        if self._watcher_task:
            self._watcher_task.cancel()

        if self.config.get("api", {}).get("enabled", False):
            from teleport.api import stop_api
            await stop_api()
        log.info("Shutdown complete")

    async def run_loop(self) -> None:
        while self._running:
            await asyncio.sleep(0.5)

    async def run(self) -> None:
        await self.boot()
        try:
            await self.run_loop()
        except asyncio.CancelledError:
            pass
        finally:
            await self.shutdown()

    def reload_config(self) -> None:
        """Re-read the config file and apply it to live sessions."""
        config = load_config(self.config_path)
        settings = Settings.from_config(config)
        self.config = config
        self.settings = settings
        self.registry.apply_settings(settings)
        self.permissions = StaticPermissions.from_config(config)
        self.protocol.permissions = self.permissions
        log.info("Config reloaded from %s", self.config_path)

    # ── Command system ───────────────────────────────────────────

    def register_command(self, name: str, handler: CommandHandler, aliases: tuple[str, ...] = ()) -> None:
        self.cmd_handlers[name] = handler
        for alias in aliases:
            self.cmd_aliases[alias] = name

    def resolve_command(self, token: str) -> CommandHandler | None:
        """Exact name, then alias, then a unique prefix."""
        token = token.lower().lstrip("/")
        if token in self.cmd_handlers:
            return self.cmd_handlers[token]
        if token in self.cmd_aliases:
            return self.cmd_handlers[self.cmd_aliases[token]]
        matches = [k for k in self.cmd_handlers if k.startswith(token)]
        if len(matches) == 1:
            return self.cmd_handlers[matches[0]]
        return None

    async def process_command(self, actor: str, text: str) -> list[str]:
        """Run a command for ``actor``; returns the messages it was sent."""
        parts = text.strip().split(None, 1)
        if not parts:
            return []
        sent_before = len(self.world.get_actor(actor).messages)

        handler = self.resolve_command(parts[0])
        if handler is None:
            self.world.tell(actor, "Unknown command.")
        else:
            args = parts[1] if len(parts) > 1 else ""
            try:
                await handler(self, actor, args)
            except TeleportError as exc:
                log.info("%s: '%s' rejected: %s", actor, text, exc)
                self.world.tell(actor, str(exc))

        return self.world.get_actor(actor).messages[sent_before:]


# ── Main ─────────────────────────────────────────────────────────

def main() -> None:
    config_path = os.environ.get("TELEPORT_CONFIG", str(BASE_DIR / "config" / "teleport.yaml"))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine = Engine(config_path)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _signal_handler() -> None:
        engine._running = False

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        loop.run_until_complete(engine.run())
    finally:
        loop.close()


if __name__ == "__main__":
    main()
