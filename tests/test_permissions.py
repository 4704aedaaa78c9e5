"""Tests for the static capability table."""

from teleport.permissions import StaticPermissions


class TestStaticPermissions:
    def test_default_grants(self):
        perms = StaticPermissions(default=["call"])
        assert perms.has_capability("anyone", "call")
        assert not perms.has_capability("anyone", "teleport")

    def test_actor_grants_case_insensitive(self):
        perms = StaticPermissions(actors={"Admin": ["teleport.other"]})
        assert perms.has_capability("admin", "teleport.other")
        assert not perms.has_capability("other", "teleport.other")

    def test_wildcards(self):
        perms = StaticPermissions(actors={"op": ["*"], "mod": ["teleport.*"]})
        assert perms.has_capability("op", "return.other")
        assert perms.has_capability("mod", "teleport.other")
        assert not perms.has_capability("mod", "return")

    def test_world_grant_only_in_world(self):
        perms = StaticPermissions(worlds={"world_nether": {"bob": ["teleport.other"]}})
        assert perms.has_capability("bob", "teleport.other", world="world_nether")
        assert not perms.has_capability("bob", "teleport.other")
        assert not perms.has_capability("bob", "teleport.other", world="world")

    def test_world_denial(self):
        perms = StaticPermissions(
            actors={"mod": ["teleport.other"]},
            worlds={"world_the_end": {"mod": ["-teleport.other"]}},
        )
        assert perms.has_capability("mod", "teleport.other")
        assert perms.has_capability("mod", "teleport.other", world="world")
        assert not perms.has_capability("mod", "teleport.other", world="world_the_end")

    def test_grant(self):
        perms = StaticPermissions()
        perms.grant("Eve", "return")
        perms.grant("eve", "call", world="world")
        assert perms.has_capability("eve", "return")
        assert perms.has_capability("eve", "call", world="world")
        assert not perms.has_capability("eve", "call")

    def test_from_config(self):
        perms = StaticPermissions.from_config({
            "permissions": {"default": ["call"], "actors": {"op": ["*"]}},
        })
        assert perms.has_capability("x", "call")
        assert perms.has_capability("op", "teleport")
