"""Teleport commands — teleport, call, bring, put, return."""

from __future__ import annotations

from typing import TYPE_CHECKING

from teleport.errors import NotAuthorized, TargetUnresolvable
from teleport.position import Position

if TYPE_CHECKING:
    from teleport.engine import Engine


def register(engine: Engine) -> None:
    engine.register_command("teleport", do_teleport, aliases=("tp",))
    engine.register_command("call", do_call)
    engine.register_command("bring", do_bring, aliases=("tphere", "summon", "s"))
    engine.register_command("put", do_put, aliases=("place",))
    engine.register_command("return", do_return, aliases=("ret",))


def parse_destination(engine: Engine, sender: str, text: str) -> Position:
    """Resolve ``#target``, ``[world:]x,y,z`` or a player name to a position."""
    world = engine.world
    if text == "#target":
        return world.line_of_sight(sender)

    here = world.position_of(sender)
    if "," in text:
        world_name, _, coords = text.rpartition(":")
        parts = coords.split(",")
        if len(parts) != 3:
            raise TargetUnresolvable("Invalid location. Use x,y,z or world:x,y,z.")
        try:
            x, y, z = (float(p) for p in parts)
        except ValueError:
            raise TargetUnresolvable("Invalid location. Use x,y,z or world:x,y,z.") from None
        world_name = world_name or here.world
        if world_name not in world.worlds:
            raise TargetUnresolvable(f"Unknown world: {world_name}")
        return Position(world_name, x, y, z, here.pitch, here.yaw)

    return world.position_of(world.find_actor(text))


async def do_teleport(engine: Engine, sender: str, args: str) -> None:
    """Teleport yourself or others: teleport [-s] [target] <destination>."""
    parts = args.split()
    silent = "-s" in parts
    parts = [p for p in parts if p != "-s"]
    if len(parts) == 1:
        targets = [sender]
        destination = parse_destination(engine, sender, parts[0])
    elif len(parts) == 2:
        targets = engine.world.match_actors(parts[0])
        destination = parse_destination(engine, sender, parts[1])
    else:
        engine.world.tell(sender, "Usage: teleport [target] <destination>")
        return

    result = await engine.protocol.teleport(sender, targets, destination)
    sender_name = engine.world.get_actor(sender).name
    for moved in result.moved:
        if moved.actor != sender and not silent:
            engine.world.tell(moved.actor, f"You've been teleported by {sender_name}.")
    engine.world.tell(sender, f"Teleported {len(result.moved)} player(s).")


async def do_call(engine: Engine, sender: str, args: str) -> None:
    if not args.strip():
        engine.world.tell(sender, "Usage: call <target>")
        return
    target = engine.world.find_actor(args.strip())
    await engine.protocol.call(sender, target)

    messages = engine.settings.messages
    engine.world.tell(sender, messages.call_sender)
    engine.world.tell(target, messages.call_target % engine.world.get_actor(sender).name)


async def do_bring(engine: Engine, sender: str, args: str) -> None:
    if not args.strip():
        engine.world.tell(sender, "Usage: bring <target>")
        return
    targets = engine.world.match_actors(args.strip())
    result = await engine.protocol.bring(sender, targets)
    if not result.moved:
        if result.skipped:
            names = ", ".join(engine.world.get_actor(a).name for a in result.skipped)
            raise NotAuthorized(f"You can't teleport {names} from another world.")
        raise TargetUnresolvable("Nobody to bring.")

    messages = engine.settings.messages
    sender_name = engine.world.get_actor(sender).name
    for moved in result.moved:
        engine.world.tell(moved.actor, messages.bring_target % sender_name)
    engine.world.tell(sender, messages.bring_sender)


async def do_put(engine: Engine, sender: str, args: str) -> None:
    if not args.strip():
        engine.world.tell(sender, "Usage: put <target>")
        return
    targets = engine.world.match_actors(args.strip())
    destination = engine.world.line_of_sight(sender)
    result = await engine.protocol.put(sender, targets, destination)
    engine.world.tell(sender, f"Placed {len(result.moved)} player(s).")


async def do_return(engine: Engine, sender: str, args: str) -> None:
    target = engine.world.find_actor(args.strip()) if args.strip() else None
    await engine.protocol.ret(sender, target)
    engine.world.tell(sender, engine.settings.messages.return_done)
