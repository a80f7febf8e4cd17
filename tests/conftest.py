import pytest

from module_shell.cli.config import ShellConfig
from module_shell.cli.shell import ShellSession
from module_shell.registry import ModuleRegistry

from tests.helpers.sample_modules import FakeClock, RecordingModule, make_surface


@pytest.fixture
def surface():
    return make_surface()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def demo_module():
    return RecordingModule("demo")


@pytest.fixture
def registry(demo_module):
    registry = ModuleRegistry()
    registry.register("demo", demo_module)
    return registry


@pytest.fixture
def session(registry, surface, clock):
    return ShellSession(registry, surface, ShellConfig(), clock=clock)
