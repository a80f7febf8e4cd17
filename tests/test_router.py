"""
Tests for line parsing, command resolution, flag binding, and completion.
"""

import asyncio

import pytest

from module_shell.cli.builtins import build_builtin_table
from module_shell.cli.router import (
    CommandRouter,
    ParsedCommand,
    apply_completion,
    common_prefix,
    parse_line,
    parse_tokens,
)
from module_shell.exceptions import NotFoundError, UsageError
from module_shell.registry import ModuleRegistry
from module_shell.schemas import FlagSpec, FlagType

from tests.helpers.sample_modules import HookedModule, RecordingModule


@pytest.fixture
def router(registry):
    return CommandRouter(registry, build_builtin_table())


# ============================================================================
# LINE PARSING
# ============================================================================


class TestParseLine:
    """Tests for parse_line()."""

    def test_blank_line_is_none(self):
        assert parse_line("") is None
        assert parse_line("   \t ") is None

    def test_consecutive_flags_are_boolean(self):
        parsed = parse_line("cmd --a --b")
        assert parsed.flags == {"a": True, "b": True}

    def test_flag_consumes_following_value(self):
        parsed = parse_line("cmd --name value")
        assert parsed.flags == {"name": "value"}
        assert parsed.args == []

    def test_positionals_and_flags_mix(self):
        parsed = parse_line("demo greet bob --loud --times 3 extra")
        assert parsed.name == "demo"
        assert parsed.args == ["greet", "bob", "extra"]
        assert parsed.flags == {"loud": True, "times": "3"}

    def test_trailing_flag_is_boolean(self):
        assert parse_line("cmd x --verbose").flags == {"verbose": True}

    def test_equals_form(self):
        assert parse_line("cmd --name=a=b --empty=").flags == {"name": "a=b", "empty": ""}

    def test_extra_whitespace_is_ignored(self):
        parsed = parse_line("  demo    greet   ")
        assert parsed.name == "demo"
        assert parsed.args == ["greet"]
        assert parsed.raw == "  demo    greet   "

    def test_parse_tokens_keeps_spaces_inside_tokens(self):
        parsed = parse_tokens(["demo", "greet", "two words"])
        assert parsed.args == ["greet", "two words"]


# ============================================================================
# FLAG BINDING
# ============================================================================


class TestBinding:
    """Tests for Command.bind()."""

    def test_positional_and_default(self, demo_module):
        greet = demo_module.get_command("greet")
        assert greet.bind(["bob"], {}) == {"who": "bob", "loud": False}
        assert greet.bind([], {"loud": True}) == {"who": "world", "loud": True}

    def test_boolean_words(self, demo_module):
        greet = demo_module.get_command("greet")
        assert greet.bind([], {"loud": "yes"})["loud"] is True
        assert greet.bind([], {"loud": "off"})["loud"] is False

    def test_integer_coercion(self, demo_module):
        count = demo_module.get_command("count")
        assert count.bind([], {"n": "42"}) == {"n": 42}

    def test_bad_integer_is_usage_error(self, demo_module):
        count = demo_module.get_command("count")
        with pytest.raises(UsageError) as exc_info:
            count.bind([], {"n": "many"})
        assert exc_info.value.command_name == "count"

    def test_missing_required_flag(self, demo_module):
        with pytest.raises(UsageError, match="Missing required parameter --n"):
            demo_module.get_command("count").bind([], {})

    def test_valueless_non_boolean_flag(self, demo_module):
        with pytest.raises(UsageError, match="requires a value"):
            demo_module.get_command("count").bind([], {"n": True})

    def test_unknown_flag_rejected(self, demo_module):
        with pytest.raises(UsageError, match="Unknown flag '--nope'"):
            demo_module.get_command("greet").bind([], {"nope": True})

    def test_unknown_flag_ignored_by_policy(self, demo_module):
        boom = demo_module.get_command("boom")
        assert boom.bind(["extra"], {"nope": True}) == {}

    def test_extra_positional_rejected(self, demo_module):
        with pytest.raises(UsageError, match="Unexpected argument"):
            demo_module.get_command("greet").bind(["a", "b"], {})

    def test_choices_enforced(self):
        spec = FlagSpec(name="style", choices=["a", "b"])
        assert spec.coerce("a") == "a"
        with pytest.raises(UsageError, match="must be one of"):
            spec.coerce("c")

    def test_number_coercion(self):
        assert FlagSpec(name="x", type=FlagType.NUMBER).coerce("0.25") == 0.25


# ============================================================================
# RESOLUTION
# ============================================================================


class TestResolve:
    """Tests for CommandRouter.resolve()."""

    def test_builtin_wins(self, router):
        route = router.resolve(parse_line("help"))
        assert route.is_builtin
        assert route.name == "help"

    def test_builtin_alias(self, router):
        route = router.resolve(parse_line("quit"))
        assert route.builtin.name == "exit"

    def test_module_command(self, router):
        route = router.resolve(parse_line("demo greet bob --loud"))
        assert not route.is_builtin
        assert route.module_name == "demo"
        assert route.command.name == "greet"
        assert route.flags == {"who": "bob", "loud": True}

    def test_module_command_alias(self, router):
        assert router.resolve(parse_line("demo hi")).command.name == "greet"

    def test_module_alone_routes_to_help(self, router):
        route = router.resolve(parse_line("demo"))
        assert route.builtin.name == "help"
        assert route.parsed.args == ["demo"]

    def test_unknown_command(self, router):
        with pytest.raises(NotFoundError, match='Unknown command: "nope"'):
            router.resolve(parse_line("nope"))

    def test_unknown_subcommand(self, router):
        with pytest.raises(NotFoundError) as exc_info:
            router.resolve(parse_line("demo fly"))
        assert exc_info.value.module == "demo"

    def test_inactive_module(self):
        registry = ModuleRegistry()
        registry.register("sick", HookedModule("sick", healthy=False))
        asyncio.run(registry.health_check())
        router = CommandRouter(registry, build_builtin_table())

        with pytest.raises(NotFoundError, match="not active"):
            router.resolve(parse_line("sick greet"))

    def test_binding_errors_surface(self, router):
        with pytest.raises(UsageError):
            router.resolve(parse_line("demo count --n lots"))


# ============================================================================
# COMPLETION
# ============================================================================


class TestCompletion:
    """Tests for tab completion."""

    def test_first_token_completes_builtins_and_modules(self, router):
        assert router.complete("he") == ["health", "help"]
        assert router.complete("de") == ["demo"]

    def test_second_token_completes_module_commands(self, router):
        assert router.complete("demo g") == ["greet"]
        assert router.complete("demo ") == ["boom", "count", "greet", "hi"]

    def test_second_token_completes_builtin_subcommands(self, router):
        assert router.complete("theme s") == ["set", "show"]
        assert router.complete("config s") == ["set", "show"]

    def test_unknown_first_token_has_no_subcommands(self, router):
        assert router.complete("nope x") == []
        assert router.complete("help x") == []

    def test_three_tokens_propose_nothing(self, router):
        assert router.complete("demo greet b") == []

    def test_apply_single_candidate(self):
        assert apply_completion("de", ["demo"]) == "demo "
        assert apply_completion("demo gr", ["greet"]) == "demo greet "

    def test_apply_common_prefix(self):
        assert apply_completion("h", ["health", "help", "history"]) == "h"
        assert apply_completion("he", ["health", "help"]) == "he"
        assert apply_completion("c", ["config", "count"]) == "co"

    def test_common_prefix(self):
        assert common_prefix(["alpha", "alpine"]) == "alp"
        assert common_prefix([]) == ""

    def test_new_module_appears_in_completion(self, router):
        router.registry.register("delta", RecordingModule("delta"))
        assert router.complete("de") == ["delta", "demo"]

    def test_parsed_command_defaults(self):
        parsed = ParsedCommand(name="x")
        assert parsed.args == [] and parsed.flags == {}
