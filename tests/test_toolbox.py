"""
Tests for the bundled toolbox module.
"""

import asyncio

import pytest

from module_shell.modules import ToolboxModule
from module_shell.registry import ModuleRegistry


def run(module, name, args=(), flags=None):
    command = module.get_command(name)
    bound = command.bind(list(args), flags or {})
    asyncio.run(command.handler(bound))


@pytest.fixture
def toolbox():
    return ToolboxModule()


class TestToolboxContract:
    """The toolbox passes registration without errors or warnings."""

    def test_validates_cleanly(self, toolbox):
        result = ModuleRegistry.validate_module(toolbox)
        assert result.is_valid
        assert result.warnings == []

    def test_initialize_and_health(self, toolbox):
        registry = ModuleRegistry()
        registry.register("toolbox", toolbox)
        asyncio.run(registry.initialize_all())
        statuses = asyncio.run(registry.health_check())
        assert toolbox.initialized
        assert statuses["toolbox"].is_active

    def test_bad_config_fails_health(self):
        registry = ModuleRegistry()
        registry.register("toolbox", ToolboxModule({"default_width": 0}))
        statuses = asyncio.run(registry.health_check())
        assert "default_width must be positive" in statuses["toolbox"].error


class TestToolboxCommands:
    """Tests for toolbox command handlers."""

    def test_echo(self, toolbox, capsys):
        run(toolbox, "echo", ["hi"], {"upper": True, "repeat": "2"})
        assert capsys.readouterr().out == "HI\nHI\n"

    def test_echo_alias(self, toolbox):
        assert toolbox.get_command("say").name == "echo"

    def test_progress(self, toolbox, capsys):
        run(toolbox, "progress", ["0.5"], {"width": "10"})
        assert capsys.readouterr().out == "[█████░░░░░] 50%\n"

    def test_progress_label_and_style(self, toolbox, capsys):
        run(toolbox, "bar", ["0.5"], {"width": "4", "style": "dots", "label": "Up"})
        assert capsys.readouterr().out == "Up [●●○○] 50%\n"

    def test_progress_default_width(self, capsys):
        module = ToolboxModule({"default_width": 6})
        run(module, "progress", ["1"])
        assert capsys.readouterr().out == "[██████] 100%\n"

    def test_box(self, toolbox, capsys):
        run(toolbox, "box", ["Notes"], {"text": "hello", "width": "20", "style": "single"})
        rows = capsys.readouterr().out.splitlines()
        assert len(rows) == 5
        assert rows[0].startswith("┌") and "Notes" in rows[0]
        assert any("hello" in row for row in rows)
        assert all(len(row) == 20 for row in rows)

    def test_sleep_reports_progress(self, toolbox, capsys):
        run(toolbox, "sleep", ["0"], {"steps": "2"})
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3
        assert lines[-1] == "Done"

    def test_sleep_bounded(self):
        module = ToolboxModule({"max_sleep": 1})
        with pytest.raises(ValueError, match="between 0 and 1"):
            run(module, "sleep", ["5"])
