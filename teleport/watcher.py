"""Dev-mode config watcher — reload settings when the YAML file changes."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from watchfiles import awatch

if TYPE_CHECKING:
    from teleport.engine import Engine

log = logging.getLogger(__name__)


async def start_watcher(config_path: Path, engine: Engine) -> asyncio.Task:
    """Start a watchfiles-based watcher on the config file."""
    config_path = config_path.resolve()

    async def _watch() -> None:
        log.info("Config watcher started for %s", config_path)
        async for changes in awatch(config_path.parent):
            if not any(Path(p).resolve() == config_path for _, p in changes):
                continue
            try:
                engine.reload_config()
            except (OSError, ValueError, yaml.YAMLError):
                log.exception("Failed to reload %s", config_path)

    return asyncio.create_task(_watch())
