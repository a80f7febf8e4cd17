"""Module Shell package root.

The public API surface is the module registry, the exception hierarchy, and
the schema types exposed in ``module_shell.schemas``. The interactive shell
lives in ``module_shell.cli``.
"""

__version__ = "0.1.0"

from module_shell.exceptions import *  # noqa: F401,F403
from module_shell.exceptions import __all__ as EXCEPTION_EXPORTS
from module_shell.registry import ModuleRegistry  # noqa: F401
from module_shell.schemas import *  # noqa: F401,F403
from module_shell.schemas import __all__ as SCHEMA_EXPORTS

__all__ = ["__version__", "ModuleRegistry"] + EXCEPTION_EXPORTS + SCHEMA_EXPORTS
