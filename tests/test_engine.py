"""Tests for the engine — command dispatch end to end."""

import pytest
import yaml

from teleport.engine import Engine
from teleport.position import Position


def _make_engine(tmp_path, **teleport_cfg):
    config = {
        "name": "test",
        "teleport": {"bring_window": 300, "call_cooldown": 30, "history_capacity": 10, **teleport_cfg},
        "worlds": ["world", "world_nether"],
        "permissions": {"default": ["teleport", "call", "return"], "actors": {"op": ["*"]}},
        "api": {"enabled": False},
    }
    path = tmp_path / "teleport.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    engine = Engine(path)
    engine.world.join("Alice", Position("world", 0, 64, 0))
    engine.world.join("Bob", Position("world", 50, 64, 50))
    engine.world.join("Op", Position("world", 100, 64, 100))
    return engine


class TestCommandResolution:
    def test_registered(self, tmp_path):
        engine = _make_engine(tmp_path)
        assert set(engine.cmd_handlers) == {"teleport", "call", "bring", "put", "return"}

    def test_aliases_and_prefix(self, tmp_path):
        engine = _make_engine(tmp_path)
        assert engine.resolve_command("tp") is engine.cmd_handlers["teleport"]
        assert engine.resolve_command("/tphere") is engine.cmd_handlers["bring"]
        assert engine.resolve_command("ret") is engine.cmd_handlers["return"]
        assert engine.resolve_command("cal") is engine.cmd_handlers["call"]
        assert engine.resolve_command("xyz") is None

    @pytest.mark.asyncio
    async def test_unknown_command(self, tmp_path):
        engine = _make_engine(tmp_path)
        assert await engine.process_command("alice", "fly") == ["Unknown command."]

    @pytest.mark.asyncio
    async def test_empty_input(self, tmp_path):
        engine = _make_engine(tmp_path)
        assert await engine.process_command("alice", "   ") == []


class TestCallBringCommands:
    @pytest.mark.asyncio
    async def test_call_and_bring(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("alice", "call bob")
        assert out == ["Teleport request sent."]
        assert "**TELEPORT** Alice requests a teleport!" in engine.world.get_actor("bob").messages[-1]

        out = await engine.process_command("bob", "bring alice")
        assert out == ["Player teleported."]
        assert engine.world.position_of("alice") == engine.world.position_of("bob")
        assert engine.world.get_actor("alice").messages[-1] == (
            "Your teleport request to Bob was accepted."
        )

        out = await engine.process_command("bob", "bring alice")
        assert "didn't request a teleport" in out[0]

    @pytest.mark.asyncio
    async def test_call_too_soon(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("alice", "call bob")
        out = await engine.process_command("alice", "call bob")
        assert out == ["Wait a bit before asking again."]

    @pytest.mark.asyncio
    async def test_call_unknown_player(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("alice", "call zed")
        assert out == ["No players matched query."]

    @pytest.mark.asyncio
    async def test_call_usage(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("alice", "call")
        assert out[0].startswith("Usage")


class TestTeleportCommands:
    @pytest.mark.asyncio
    async def test_teleport_coordinates_then_return(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("alice", "tp 10,70,-10")
        assert engine.world.position_of("alice") == Position("world", 10, 70, -10)

        out = await engine.process_command("alice", "return")
        assert out == ["You've been returned."]
        assert engine.world.position_of("alice") == Position("world", 0, 64, 0)

        out = await engine.process_command("alice", "return")
        assert out == ["There's no past location in your history."]

    @pytest.mark.asyncio
    async def test_teleport_to_world(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("alice", "tp world_nether:1,2,3")
        assert engine.world.position_of("alice").world == "world_nether"

    @pytest.mark.asyncio
    async def test_teleport_to_player(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("alice", "teleport bob")
        assert engine.world.position_of("alice") == engine.world.position_of("bob")

    @pytest.mark.asyncio
    async def test_teleport_bad_location(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("alice", "tp 1,x,3")
        assert out[0].startswith("Invalid location")
        out = await engine.process_command("alice", "tp mars:1,2,3")
        assert out == ["Unknown world: mars"]

    @pytest.mark.asyncio
    async def test_teleport_other_denied(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("alice", "tp bob 1,2,3")
        assert out == ["You don't have permission for this command."]
        assert engine.world.position_of("bob") == Position("world", 50, 64, 50)

    @pytest.mark.asyncio
    async def test_admin_teleport_other(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("op", "tp bob 1,2,3")
        assert engine.world.position_of("bob").x == 1
        assert engine.world.get_actor("bob").messages == ["You've been teleported by Op."]

    @pytest.mark.asyncio
    async def test_admin_teleport_silent(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("op", "tp -s bob 1,2,3")
        assert engine.world.get_actor("bob").messages == []

    @pytest.mark.asyncio
    async def test_admin_bring_everyone(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("op", "bring *")
        here = engine.world.position_of("op")
        assert engine.world.position_of("alice") == here
        assert engine.world.position_of("bob") == here

    @pytest.mark.asyncio
    async def test_admin_bring_other_world_denied(self, tmp_path):
        engine = _make_engine(tmp_path)
        engine.permissions.grant("op", "-teleport.other", world="world_nether")
        nether = Position("world_nether", 50, 64, 50)
        await engine.world.relocate("bob", nether)

        out = await engine.process_command("op", "bring bob")
        assert out == ["You can't teleport Bob from another world."]
        assert engine.world.position_of("bob") == nether
        assert engine.world.get_actor("bob").messages == []

    @pytest.mark.asyncio
    async def test_admin_bring_self(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("op", "bring op")
        assert out == ["Nobody to bring."]

    @pytest.mark.asyncio
    async def test_put(self, tmp_path):
        engine = _make_engine(tmp_path)
        engine.world.get_actor("op").looking_at = Position("world", 7, 65, 7)
        out = await engine.process_command("op", "put alice")
        assert out == ["Placed 1 player(s)."]
        assert engine.world.position_of("alice").x == 7

    @pytest.mark.asyncio
    async def test_put_nothing_in_sight(self, tmp_path):
        engine = _make_engine(tmp_path)
        out = await engine.process_command("op", "put alice")
        assert out == ["No block in sight!"]

    @pytest.mark.asyncio
    async def test_return_other(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.process_command("op", "tp bob 1,2,3")
        await engine.process_command("op", "ret bob")
        assert engine.world.position_of("bob") == Position("world", 50, 64, 50)


class TestLifecycle:
    def test_quit_drops_session(self, tmp_path):
        engine = _make_engine(tmp_path)
        engine.registry.get_session("alice")
        engine.world.quit("alice")
        assert "alice" not in engine.registry

    def test_reload_config(self, tmp_path):
        engine = _make_engine(tmp_path)
        session = engine.registry.get_session("alice")
        config = yaml.safe_load(engine.config_path.read_text(encoding="utf-8"))
        config["teleport"]["history_capacity"] = 2
        config["permissions"]["default"] = []
        engine.config_path.write_text(yaml.safe_dump(config), encoding="utf-8")

        engine.reload_config()
        assert engine.settings.history_capacity == 2
        assert session.history.capacity == 2
        assert not engine.protocol.permissions.has_capability("alice", "call")

    def test_reload_invalid_keeps_settings(self, tmp_path):
        engine = _make_engine(tmp_path)
        engine.config_path.write_text("teleport: {history_capacity: 0}\n", encoding="utf-8")
        with pytest.raises(ValueError):
            engine.reload_config()
        assert engine.settings.history_capacity == 10

    @pytest.mark.asyncio
    async def test_boot_and_shutdown(self, tmp_path):
        engine = _make_engine(tmp_path)
        await engine.boot()
        assert engine._running
        await engine.shutdown()
        assert not engine._running
