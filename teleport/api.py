"""REST API — online actors, session state, command submission, config reload."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import yaml
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from teleport.errors import TargetUnresolvable

if TYPE_CHECKING:
    from teleport.engine import Engine

log = logging.getLogger(__name__)

app = FastAPI(title="Teleport API", version="0.1.0")

# Engine reference — set by start_api()
_engine: Engine | None = None


def get_engine() -> Engine:
    if _engine is None:
        raise HTTPException(status_code=503, detail="Engine not ready")
    return _engine


class CommandRequest(BaseModel):
    actor: str
    text: str


# ── REST endpoints ────────────────────────────────────────────────

@app.get("/api/who")
async def api_who() -> JSONResponse:
    """List online actors and where they are."""
    engine = get_engine()
    actors = []
    for actor in engine.world.actors.values():
        actors.append({
            "id": actor.id,
            "name": actor.name,
            "position": actor.position.to_dict(),
        })
    return JSONResponse({"actors": actors, "count": len(actors)})


@app.get("/api/stats")
async def api_stats() -> JSONResponse:
    engine = get_engine()
    return JSONResponse({
        "actors_online": len(engine.world.actors),
        "sessions": len(engine.registry),
        "worlds": sorted(engine.world.worlds),
        "commands_registered": len(engine.cmd_handlers),
        "bring_window": engine.settings.bring_window,
        "call_cooldown": engine.settings.call_cooldown,
        "history_capacity": engine.settings.history_capacity,
    })


@app.get("/api/sessions/{actor}")
async def api_session(actor: str) -> JSONResponse:
    """Teleport session state for one actor."""
    engine = get_engine()
    actor = actor.lower()
    if actor not in engine.registry:
        raise HTTPException(status_code=404, detail="Session not found")
    session = engine.registry.get_session(actor)
    with session.lock:
        ignore = session.get_ignore_location()
        return JSONResponse({
            "actor": actor,
            "history_depth": len(session.history),
            "history_capacity": session.history.capacity,
            "bringable": session.bringable.requesters(),
            "pending_calls": session.requests.requesters(),
            "ignore_location": ignore.to_dict() if ignore else None,
        })


@app.post("/api/command")
async def api_command(req: CommandRequest) -> JSONResponse:
    """Run a command on behalf of an online actor."""
    engine = get_engine()
    try:
        messages = await engine.process_command(req.actor.lower(), req.text)
    except TargetUnresolvable as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return JSONResponse({"messages": messages})


@app.post("/api/reload")
async def api_reload() -> JSONResponse:
    """Re-read the configuration file."""
    engine = get_engine()
    try:
        engine.reload_config()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        log.exception("Config reload failed")
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse({"status": "ok"})


# ── Server start/stop ──────────────────────────────────────────────

_server_task: asyncio.Task | None = None


async def start_api(engine: Engine, host: str = "127.0.0.1", port: int = 8080) -> None:
    """Start FastAPI server in background."""
    global _engine, _server_task
    _engine = engine

    import uvicorn

    config = uvicorn.Config(
        app, host=host, port=port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)
    _server_task = asyncio.create_task(server.serve())
    log.info("API server starting on %s:%d", host, port)


async def stop_api() -> None:
    """Stop the server and detach the engine; handlers answer 503 afterwards."""
    global _engine, _server_task
    if _server_task:
        _server_task.cancel()
        try:
            await _server_task
        except asyncio.CancelledError:
            pass
        _server_task = None
    _engine = None
    log.info("API server stopped")
