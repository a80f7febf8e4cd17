"""Capability module loading and bundled modules."""

from .loader import ModuleLoader, register_modules
from .toolbox import ToolboxModule

__all__ = ["ModuleLoader", "register_modules", "ToolboxModule"]
