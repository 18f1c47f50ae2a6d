"""Tests for commandeer/commands/registry.py and decorators.py"""

import pytest

from commandeer.commands import ArgumentInfo, Command, CommandGroup, CommandRegistry, FunctionCommand, command
from commandeer.types import StringArgumentType


def make_command(name, group="util", **options):
    @command(name, group, f"The {name} command", **options)
    async def callback(ctx, args):
        return None

    return callback


class EchoCommand(Command):
    def __init__(self, registry):
        super().__init__(
            registry,
            name="echo",
            group="util",
            description="Repeats text",
            args=[ArgumentInfo(key="text", prompt="What should I say?", type="string")],
        )

    async def run(self, ctx, args, from_pattern=False, result=None):
        return await ctx.reply(args["text"])


class TestGroupRegistration:
    """Test registering groups."""

    def test_register_group_variants(self):
        registry = CommandRegistry()
        registry.register_groups(["fun", ("mod", "Moderation"), CommandGroup("misc")])

        assert set(registry.groups) == {"fun", "mod", "misc"}
        assert registry.groups["mod"].name == "Moderation"

    def test_duplicate_group_raises(self, registry):
        with pytest.raises(ValueError):
            registry.register_group("util")

    def test_invalid_group_id(self):
        with pytest.raises(ValueError):
            CommandGroup("Util")


class TestCommandRegistration:
    """Test registering commands."""

    def test_register_class(self, registry):
        echo = registry.register_command(EchoCommand)

        assert registry.commands["echo"] is echo
        assert echo.group is registry.groups["util"]
        assert registry.groups["util"].commands["echo"] is echo
        assert echo.format == "<text>"

    def test_register_decorated_function(self, registry):
        registered = registry.register_command(make_command("ping"))

        assert isinstance(registered, FunctionCommand)
        assert registered.description == "The ping command"

    def test_duplicate_name_or_alias_raises(self, registry):
        registry.register_command(make_command("ping", aliases=["pong"]))

        with pytest.raises(ValueError):
            registry.register_command(make_command("ping"))
        with pytest.raises(ValueError):
            registry.register_command(make_command("pong"))

    def test_unregistered_group_raises(self, registry):
        with pytest.raises(ValueError):
            registry.register_command(make_command("ping", group="missing"))

    def test_duplicate_member_name_raises(self, registry):
        registry.register_command(make_command("ping", member_name="shared"))

        with pytest.raises(ValueError):
            registry.register_command(make_command("pong", member_name="shared"))

    def test_second_unknown_command_raises(self, registry):
        registry.register_command(make_command("unknown-one", unknown=True, hidden=True))

        with pytest.raises(ValueError):
            registry.register_command(make_command("unknown-two", unknown=True, hidden=True))

    def test_invalid_object_raises(self, registry):
        with pytest.raises(TypeError):
            registry.register_command(object())

    def test_dashed_names_get_auto_alias(self, registry):
        registered = registry.register_command(make_command("set-prefix"))
        assert "setprefix" in registered.aliases

    def test_unregister(self, registry):
        registered = registry.register_command(make_command("ping"))

        registry.unregister_command(registered)

        assert "ping" not in registry.commands
        assert "ping" not in registry.groups["util"].commands

    def test_reregister(self, registry):
        old = registry.register_command(make_command("ping"))
        new = registry.reregister_command(make_command("ping"), old)

        assert registry.commands["ping"] is new
        assert new is not old

        with pytest.raises(ValueError):
            registry.reregister_command(make_command("pong"), new)


class TestTypeRegistration:
    """Test registering argument types."""

    def test_default_types(self, registry):
        for type_id in ("string", "integer", "float", "boolean", "duration", "date", "user", "member", "role",
                        "channel", "text-channel", "voice-channel", "category-channel", "news-channel", "stage-channel",
                        "thread-channel", "time", "custom-emoji", "invite", "command", "group"):
            assert type_id in registry.types

    def test_disable_default_type(self):
        registry = CommandRegistry().register_default_types({"date": False})
        assert "date" not in registry.types
        assert "string" in registry.types

    def test_duplicate_type_raises(self, registry):
        with pytest.raises(ValueError):
            registry.register_type(StringArgumentType)


class TestLookups:
    """Test finding commands and groups."""

    def test_exact_match_preferred(self, registry):
        """Test "foo" finds only foo even though foobar also contains it."""
        registry.register_commands([make_command("foo"), make_command("foobar")])

        assert [found.name for found in registry.find_commands("foo")] == ["foo"]
        assert sorted(found.name for found in registry.find_commands("fo")) == ["foo", "foobar"]

    def test_exact_search(self, registry):
        registry.register_commands([make_command("foo"), make_command("foobar")])

        assert registry.find_commands("fo", exact=True) == []
        assert [found.name for found in registry.find_commands("FOOBAR", exact=True)] == ["foobar"]

    def test_group_member_path(self, registry):
        registry.register_command(make_command("ping", member_name="latency"))

        assert [found.name for found in registry.find_commands("util:latency", exact=True)] == ["ping"]

    def test_alias_search(self, registry):
        registry.register_command(make_command("ping", aliases=["pong"]))
        assert [found.name for found in registry.find_commands("pong")] == ["ping"]

    def test_resolve_command(self, registry):
        ping = registry.register_command(make_command("ping"))

        assert registry.resolve_command("ping") is ping
        assert registry.resolve_command(ping) is ping
        with pytest.raises(ValueError):
            registry.resolve_command("missing")

    def test_resolve_group(self, registry):
        assert registry.resolve_group("utility").id == "util"
        with pytest.raises(ValueError):
            registry.resolve_group("missing")


class TestFunctionCommand:
    """Test commands declared as functions."""

    @pytest.mark.asyncio
    async def test_dict_args_passed_as_keywords(self, registry, mock_context):
        received = {}

        @command("greet", "util", "Greets someone")
        async def greet(ctx, name, times=1):
            received.update(name=name, times=times)

        registered = registry.register_command(greet)
        await registered.run(mock_context, {"name": "Ann", "times": 2})

        assert received == {"name": "Ann", "times": 2}

    @pytest.mark.asyncio
    async def test_raw_args_passed_positionally(self, registry, mock_context):
        received = []

        @command("raw", "util")
        async def raw(ctx, args):
            """Echo the raw text."""
            received.append(args)

        registered = registry.register_command(raw)
        await registered.run(mock_context, "some text")

        assert received == ["some text"]
        assert registered.description == "Echo the raw text."

    def test_invalid_command_name(self, registry):
        with pytest.raises(ValueError):
            registry.register_command(make_command("Has Spaces"))

    def test_invalid_args_type(self, registry):
        with pytest.raises(ValueError):
            registry.register_command(make_command("ping", args_type="many"))
