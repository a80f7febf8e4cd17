"""
Command-line entry point for Module Shell.

Builds the registry and configuration, then runs the interactive shell or
one of the one-shot subcommands.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from module_shell import __version__
from module_shell.exceptions import HandlerError, InitializationError, ShellError
from module_shell.modules import ModuleLoader, register_modules
from module_shell.registry import ModuleRegistry
from module_shell.terminal import TerminalSurface
from module_shell.utils import configure_logging

from .builtins import BuiltinTable
from .config import ShellConfig, load_config
from .keys import TerminalKeySource
from .router import CommandRouter, parse_tokens
from .shell import ShellSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-shell",
        description="Interactive shell for pluggable capability modules",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Shell config YAML (default: $MODULE_SHELL_CONFIG)")
    parser.add_argument("--modules", help="Module manifest YAML (default: bundled modules)")
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("shell", help="Start the interactive shell (default)")
    subparsers.add_parser("modules", help="List registered modules")
    subparsers.add_parser("health", help="Run module health checks")
    search = subparsers.add_parser("search", help="Search module commands")
    search.add_argument("query", nargs="+")
    exec_parser = subparsers.add_parser("exec", help="Run one module command")
    exec_parser.add_argument("module")
    exec_parser.add_argument("subcommand")
    exec_parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def build_registry(config: ShellConfig, manifest: Optional[str] = None) -> ModuleRegistry:
    """
    Load and register modules, then run their initialize() hooks.

    Modules that fail validation or initialization stay visible through their
    status records; they are reported as warnings, not fatal errors.
    """
    loader = ModuleLoader()
    manifest_path = manifest or config.modules_manifest
    if manifest_path:
        modules = loader.load_modules_from_yaml(Path(manifest_path).expanduser())
    else:
        modules = loader.load_default_modules()

    registry = ModuleRegistry()
    for name, error in register_modules(registry, modules).items():
        logger.warning("Module '%s' rejected: %s", name, error)

    try:
        asyncio.run(registry.initialize_all())
    except InitializationError as e:
        logger.warning("%s", e)
    return registry


def run_shell(registry: ModuleRegistry, config: ShellConfig) -> int:
    surface = TerminalSurface()
    session = ShellSession(registry, surface, config)

    async def run_session() -> int:
        return await session.run(TerminalKeySource(sys.stdin.fileno()))

    exit_code = asyncio.run(run_session())
    if not session.forced:
        print("Goodbye!")
    return exit_code


def run_modules(registry: ModuleRegistry, out: TextIO) -> int:
    statuses = registry.get_all_statuses()
    if not statuses:
        print("No modules registered", file=out)
        return 0
    for name, status in statuses.items():
        module = registry.get(name)
        description = module.description if module else (status.error or "")
        print(f"{name:<14} v{status.version:<8} {status.status.value:<7} {description}", file=out)
    return 0


def run_health(registry: ModuleRegistry, out: TextIO) -> int:
    statuses = asyncio.run(registry.health_check())
    failed = 0
    for name, status in statuses.items():
        if status.is_active:
            print(f"✓ {name}: healthy", file=out)
        else:
            failed += 1
            print(f"✗ {name}: {status.error}", file=out)
    return 1 if failed else 0


def run_search(registry: ModuleRegistry, query: str, out: TextIO) -> int:
    matches = registry.find_commands(query)
    if not matches:
        print(f'No commands match "{query}"', file=out)
        return 1
    for module_name, command in matches:
        print(f"{module_name} {command.name:<16} {command.description}", file=out)
    return 0


def run_exec(registry: ModuleRegistry, module: str, subcommand: str, args: List[str]) -> int:
    """
    Run a single module command outside the shell.

    Raises:
        NotFoundError: For unknown or inactive modules and commands
        UsageError: If arguments do not bind
        HandlerError: If the handler raises
    """
    parsed = parse_tokens([module, subcommand, *args])
    route = CommandRouter(registry, BuiltinTable()).resolve(parsed)
    try:
        asyncio.run(route.command.handler(route.flags))
    except ShellError:
        raise
    except Exception as e:
        logger.debug("Command '%s' raised", route.name, exc_info=True)
        raise HandlerError(message=str(e) or e.__class__.__name__, module=module, command_name=route.name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "shell"

    try:
        config = load_config(args.config)
        level = "DEBUG" if args.verbose else config.log_level
        configure_logging(level, args.log_file or config.log_file, interactive=command == "shell")
        registry = build_registry(config, args.modules)

        if command == "shell":
            return run_shell(registry, config)
        if command == "modules":
            return run_modules(registry, sys.stdout)
        if command == "health":
            return run_health(registry, sys.stdout)
        if command == "search":
            return run_search(registry, " ".join(args.query), sys.stdout)
        return run_exec(registry, args.module, args.subcommand, args.args)
    except ShellError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
