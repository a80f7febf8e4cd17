"""
Tests for the module registry.

Covers structural validation at registration, status records, lookups, and
the concurrent health-check and initialize fan-outs.
"""

import asyncio

import pytest

from module_shell.exceptions import InitializationError, NotFoundError, RegistrationError
from module_shell.registry import ModuleRegistry
from module_shell.schemas import CapabilityModule, Category, Command, ModuleState

from tests.helpers.sample_modules import HookedModule, RecordingModule


async def _noop(flags):
    return None


def _module(commands, categories=None, **attrs):
    module = CapabilityModule()
    module.name = attrs.get("name", "broken")
    module.description = attrs.get("description", "A module")
    module.version = attrs.get("version", "0.1.0")
    module.commands = commands
    module.categories = categories if categories is not None else [Category(label="general")]
    return module


# ============================================================================
# REGISTRATION
# ============================================================================


class TestRegistration:
    """Tests for register() validation and status records."""

    def test_register_valid_module_is_active(self, demo_module):
        """A valid module is stored and gets an active status record."""
        registry = ModuleRegistry()
        registry.register("demo", demo_module)

        assert registry.get("demo") is demo_module
        assert registry.is_active("demo")
        status = registry.get_status("demo")
        assert status.status is ModuleState.ACTIVE
        assert status.version == "1.2.3"
        assert status.commands == 3
        assert status.categories == 1
        assert status.error is None

    def test_duplicate_command_names_fail_registration(self):
        """Duplicate command names reject the module but leave an error status."""
        module = _module(
            [
                Command(name="run", description="a", handler=_noop, category="general", usage="run"),
                Command(name="run", description="b", handler=_noop, category="general", usage="run"),
            ]
        )
        registry = ModuleRegistry()

        with pytest.raises(RegistrationError) as exc_info:
            registry.register("broken", module)

        assert registry.get("broken") is None
        assert "broken" not in registry.list()
        assert not registry.is_active("broken")
        status = registry.get_status("broken")
        assert status.status is ModuleState.ERROR
        assert "Duplicate command names found: run" in status.error
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.module == "broken"
        assert any("Duplicate" in error for error in exc_info.value.errors)

    def test_alias_colliding_with_command_name_is_duplicate(self):
        """Aliases share the command namespace."""
        module = _module(
            [
                Command(name="list", description="a", handler=_noop, category="general", usage="list"),
                Command(name="show", description="b", handler=_noop, category="general", usage="show", aliases=["list"]),
            ]
        )
        with pytest.raises(RegistrationError):
            ModuleRegistry().register("broken", module)

    def test_missing_metadata_and_handler_are_errors(self):
        """Missing name, version, or handler are all reported together."""
        module = _module(
            [Command(name="run", description="a", handler=None, category="general", usage="run")],
            name="",
            version="",
        )
        with pytest.raises(RegistrationError) as exc_info:
            ModuleRegistry().register("broken", module)

        errors = exc_info.value.errors
        assert "Module name is required" in errors
        assert "Module version is required" in errors
        assert "Command run missing handler" in errors

    def test_empty_command_list_is_error(self):
        """A module must expose at least one command."""
        with pytest.raises(RegistrationError) as exc_info:
            ModuleRegistry().register("empty", _module([]))
        assert "Module commands must be a non-empty list" in exc_info.value.errors

    def test_base_module_lists_are_per_instance(self):
        """Commands added to one module never show up on another."""
        first = CapabilityModule()
        first.commands.append(Command(name="run", description="a", handler=_noop, usage="run"))
        first.categories.append(Category(label="general"))
        second = CapabilityModule()
        assert second.commands == []
        assert second.categories == []

    def test_undeclared_category_is_error(self):
        """Every command's category must be declared by the module."""
        module = _module([Command(name="run", description="a", handler=_noop, category="misc", usage="run")])
        with pytest.raises(RegistrationError) as exc_info:
            ModuleRegistry().register("broken", module)
        assert any("misc" in error for error in exc_info.value.errors)

    def test_warnings_do_not_block_registration(self):
        """Count mismatches and missing usage are warnings only."""
        module = _module(
            [Command(name="run", description="a", handler=_noop, category="general")],
            categories=[Category(label="general", command_count=5)],
        )
        registry = ModuleRegistry()
        registry.register("warned", module)

        assert registry.is_active("warned")
        result = ModuleRegistry.validate_module(module)
        assert result.is_valid
        assert any("declares 5 commands but has 1" in w for w in result.warnings)
        assert "Command run missing usage" in result.warnings

    def test_reregister_replaces_module(self, demo_module):
        """Registering the same name again replaces the previous module."""
        registry = ModuleRegistry()
        registry.register("demo", demo_module)
        replacement = RecordingModule("demo")
        registry.register("demo", replacement)

        assert registry.get("demo") is replacement
        assert registry.list() == ["demo"]

    def test_failed_reregistration_makes_module_unresolvable(self, demo_module):
        """A rejected re-registration removes the previous module."""
        registry = ModuleRegistry()
        registry.register("demo", demo_module)

        with pytest.raises(RegistrationError):
            registry.register("demo", _module([]))

        assert registry.get("demo") is None
        assert not registry.is_active("demo")


# ============================================================================
# LOOKUPS
# ============================================================================


class TestLookups:
    """Tests for get/list/status accessors."""

    def test_get_all_returns_copy(self, registry):
        """Mutating the get_all() result does not affect the registry."""
        modules = registry.get_all()
        modules.clear()
        assert registry.list() == ["demo"]

    def test_get_all_statuses_returns_copy(self, registry):
        statuses = registry.get_all_statuses()
        statuses.clear()
        assert "demo" in registry.get_all_statuses()

    def test_get_safe_raises_not_found(self, registry):
        """get_safe names the missing module."""
        with pytest.raises(NotFoundError) as exc_info:
            registry.get_safe("missing")
        assert exc_info.value.module == "missing"
        assert "missing" in str(exc_info.value)

    def test_get_ui_safe_without_ui_raises(self, registry):
        with pytest.raises(NotFoundError):
            registry.get_ui_safe("demo")

    def test_ui_binding_is_tracked(self):
        module = RecordingModule("withui")
        module.ui = object()
        registry = ModuleRegistry()
        registry.register("withui", module)

        assert registry.get_ui("withui") is module.ui
        assert registry.get_ui_safe("withui") is module.ui

    def test_unregister_removes_everything(self):
        module = RecordingModule("withui")
        module.ui = object()
        registry = ModuleRegistry()
        registry.register("withui", module)

        registry.unregister("withui")

        assert registry.get("withui") is None
        assert registry.get_ui("withui") is None
        assert registry.get_status("withui") is None
        assert not registry.is_active("withui")

    def test_find_commands_matches_name_description_category(self, registry):
        assert [c.name for _, c in registry.find_commands("GREET")] == ["greet"]
        assert [c.name for _, c in registry.find_commands("fails")] == ["boom"]
        assert len(registry.find_commands("general")) == 3
        assert registry.find_commands("nothing-like-this") == []


# ============================================================================
# HEALTH CHECK AND INITIALIZATION
# ============================================================================


class TestLifecycle:
    """Tests for health_check() and initialize_all()."""

    def test_health_check_isolates_failing_module(self):
        """Exactly the failing module is marked error; others stay active."""
        registry = ModuleRegistry()
        names = ["alpha", "beta", "gamma", "delta"]
        for name in names:
            registry.register(name, HookedModule(name, healthy=(name != "gamma")))

        statuses = asyncio.run(registry.health_check())

        assert set(statuses) == set(names)
        errored = [name for name, status in statuses.items() if status.status is ModuleState.ERROR]
        assert errored == ["gamma"]
        assert "gamma unhealthy" in statuses["gamma"].error
        assert registry.is_active("alpha")
        assert not registry.is_active("gamma")

    def test_health_check_false_result_is_failure(self):
        """A sync validate() returning False marks the module as error."""
        registry = ModuleRegistry()
        registry.register("sync", HookedModule("sync", healthy=False, async_hooks=False))
        registry.register("ok", HookedModule("ok", healthy=True, async_hooks=False))

        statuses = asyncio.run(registry.health_check())

        assert statuses["sync"].status is ModuleState.ERROR
        assert statuses["ok"].status is ModuleState.ACTIVE

    def test_health_check_without_hook_is_healthy(self, registry):
        statuses = asyncio.run(registry.health_check())
        assert statuses["demo"].is_active

    def test_health_check_recovers_module(self):
        """is_active follows the most recent check."""
        module = HookedModule("flaky", healthy=False)
        registry = ModuleRegistry()
        registry.register("flaky", module)

        asyncio.run(registry.health_check())
        assert not registry.is_active("flaky")

        module.healthy = True
        asyncio.run(registry.health_check())
        assert registry.is_active("flaky")

    def test_initialize_all_reports_every_failure(self):
        """Siblings still initialize; the aggregate error names each failure."""
        registry = ModuleRegistry()
        ok = HookedModule("ok")
        registry.register("ok", ok)
        registry.register("bad1", HookedModule("bad1", init_error="no token"))
        registry.register("bad2", HookedModule("bad2", init_error="timeout"))

        with pytest.raises(InitializationError) as exc_info:
            asyncio.run(registry.initialize_all())

        assert ok.initialized
        assert registry.is_active("ok")
        assert set(exc_info.value.failures) == {"bad1", "bad2"}
        assert exc_info.value.failures["bad1"] == "no token"
        assert not registry.is_active("bad1")
        assert registry.get_status("bad2").error == "timeout"

    def test_initialize_all_success(self):
        registry = ModuleRegistry()
        module = HookedModule("ok")
        registry.register("ok", module)

        asyncio.run(registry.initialize_all())

        assert module.initialized
        assert registry.is_active("ok")
