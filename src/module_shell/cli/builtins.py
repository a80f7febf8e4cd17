"""
Built-in shell commands.

Provides the name-to-handler table of built-ins and the default set:
help, status, clear, theme, config, exit/quit, modules, health, history,
and search. Handlers write their output with print().
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Tuple

from module_shell.exceptions import NotFoundError, UsageError
from module_shell.schemas import CapabilityModule, ModuleStatus

from .theme import THEMES, theme_names

if TYPE_CHECKING:
    from .context import ShellContext
    from .router import ParsedCommand

BuiltinFunc = Callable[["ShellContext", "ParsedCommand"], Awaitable[None]]


@dataclass
class BuiltinCommand:
    name: str
    func: BuiltinFunc
    help_text: str = ""
    usage: str = ""
    aliases: List[str] = field(default_factory=list)
    subcommands: List[str] = field(default_factory=list)


class BuiltinTable:
    """
    Table of built-in commands.

    Supports registration, lookup, and alias resolution.
    """

    def __init__(self):
        """Initialize an empty table."""
        self._commands: Dict[str, BuiltinCommand] = {}
        self._aliases: Dict[str, str] = {}  # alias -> command name

    def register(
        self,
        name: str,
        func: BuiltinFunc,
        aliases: Optional[List[str]] = None,
        help_text: Optional[str] = None,
        usage: str = "",
        subcommands: Optional[List[str]] = None,
    ) -> BuiltinCommand:
        """
        Register a built-in.

        Args:
            name: Command name
            func: Async handler with signature (ctx, parsed) -> None
            aliases: Optional list of aliases
            help_text: Optional help text (defaults to the first docstring line)
            usage: Optional usage string
            subcommands: Subcommand names offered by tab completion
        """
        if help_text is None:
            help_text = (func.__doc__ or "").strip().split("\n")[0]
        command = BuiltinCommand(
            name=name,
            func=func,
            help_text=help_text,
            usage=usage or name,
            aliases=list(aliases or []),
            subcommands=list(subcommands or []),
        )
        self._commands[name] = command
        for alias in command.aliases:
            self._aliases[alias] = name
        return command

    def resolve_command_name(self, name: str) -> Optional[str]:
        if name in self._aliases:
            return self._aliases[name]
        if name in self._commands:
            return name
        return None

    def get(self, name: str) -> Optional[BuiltinCommand]:
        """Get a built-in by name or alias."""
        resolved = self.resolve_command_name(name)
        return self._commands.get(resolved) if resolved else None

    def names(self) -> List[str]:
        """Command names and aliases."""
        return [*self._commands.keys(), *self._aliases.keys()]

    def list_commands(self) -> List[Tuple[str, str]]:
        """
        List registered built-ins.

        Returns:
            List of (usage, help_text) tuples in registration order
        """
        return [(command.usage, command.help_text) for command in self._commands.values()]


def _check_theme(name: str, command_name: str) -> None:
    if name not in THEMES:
        raise UsageError(
            f"Unknown theme '{name}'. Available: {', '.join(theme_names())}",
            command_name=command_name,
        )


def _status_line(ctx: "ShellContext", status: ModuleStatus) -> str:
    if status.is_active:
        marker = ctx.paint("success", "●")
        detail = f"{status.commands} commands, {status.categories} categories"
    else:
        marker = ctx.paint("error", "●")
        detail = status.error or "error"
    return f"  {marker} {status.name:<14} {status.status.value:<7} v{status.version:<8} {detail}"


def _print_module_help(ctx: "ShellContext", module: CapabilityModule) -> None:
    print(ctx.paint("accent", f"{module.name} v{module.version}") + f" - {module.description}")
    labels = module.category_labels
    grouped: Dict[str, list] = {label: [] for label in labels}
    for command in module.commands:
        grouped.setdefault(command.category or "other", []).append(command)
    for label, commands in grouped.items():
        if not commands:
            continue
        print("")
        print(ctx.paint("primary", f"  {label}"))
        for command in commands:
            print(f"    {command.name:<16} {command.description}")
            if command.usage:
                print(ctx.paint("muted", f"      usage: {command.usage}"))
            if command.aliases:
                print(ctx.paint("muted", f"      aliases: {', '.join(command.aliases)}"))
            for example in command.examples:
                print(ctx.paint("muted", f"      e.g. {example}"))


async def cmd_help(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Show built-ins and modules, or help for one module"""
    if parsed.args:
        target = parsed.args[0]
        module = ctx.registry.get(target)
        if module is not None:
            _print_module_help(ctx, module)
            return
        builtin = ctx.builtins.get(target)
        if builtin is not None:
            print(f"{builtin.usage} - {builtin.help_text}")
            return
        raise NotFoundError(f"No help available for '{target}'", module=target)

    print(ctx.paint("accent", "Built-in commands:"))
    for usage, help_text in ctx.builtins.list_commands():
        print(f"  {usage:<28} {help_text}")
    print("")
    print(ctx.paint("accent", "Modules:"))
    modules = ctx.registry.get_all()
    if not modules:
        print("  (none registered)")
    for name, module in modules.items():
        state = "" if ctx.registry.is_active(name) else ctx.paint("error", " [inactive]")
        print(f"  {name:<28} {module.description}{state}")
    print("")
    print(ctx.paint("muted", 'Type "help <module>" or just "<module>" to list its commands'))


async def cmd_status(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Show module status records"""
    statuses = ctx.registry.get_all_statuses()
    if not statuses:
        print("No modules registered")
        return
    for status in statuses.values():
        print(_status_line(ctx, status))


async def cmd_clear(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Clear the output area"""
    ctx.clear_output()


async def cmd_theme(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Show, list, or set the color theme"""
    args = parsed.args
    action = args[0] if args else "show"
    if action == "show":
        print(f"Current theme: {ctx.paint('accent', ctx.config.theme)}")
    elif action == "list":
        for name in theme_names():
            marker = "*" if name == ctx.config.theme else " "
            print(f"  {marker} {name}")
    elif action == "set":
        if len(args) < 2:
            raise UsageError("Usage: theme set <name>", command_name="theme")
        name = args[1]
        _check_theme(name, "theme")
        ctx.set_theme(name)
        print(f"Theme set to {ctx.paint('accent', name)}")
    else:
        raise UsageError("Usage: theme [show|list|set <name>]", command_name="theme")


async def cmd_config(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Show or set configuration values (in memory)"""
    args = parsed.args
    action = args[0] if args else "show"
    if action == "show":
        values = ctx.config.to_dict()
        settings = values.pop("settings")
        for key, value in values.items():
            print(f"  {key:<18} {value}")
        for key, value in settings.items():
            print(f"  {key:<18} {value}")
    elif action == "set":
        if len(args) < 3:
            raise UsageError("Usage: config set <key> <value>", command_name="config")
        key, raw = args[1], " ".join(args[2:])
        if key == "theme":
            _check_theme(raw, "config")
        value = ctx.config.set_value(key, raw)
        ctx.apply_config()
        print(f"Set {key} = {value}")
    else:
        raise UsageError("Usage: config [show|set <key> <value>]", command_name="config")


async def cmd_exit(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Exit the shell"""
    ctx.request_exit()


async def cmd_modules(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """List registered modules"""
    modules = ctx.registry.get_all()
    if not modules:
        print("No modules registered")
        return
    for name, module in modules.items():
        state = "active" if ctx.registry.is_active(name) else "inactive"
        print(f"  {name:<14} v{module.version:<8} {state:<8} {module.description}")


async def cmd_health(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Run every module's health check"""
    statuses = await ctx.registry.health_check()
    for status in statuses.values():
        print(_status_line(ctx, status))
    healthy = sum(1 for status in statuses.values() if status.is_active)
    print(f"{healthy}/{len(statuses)} modules healthy")


async def cmd_history(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Show submitted commands"""
    for index, line in enumerate(ctx.history, start=1):
        print(f"  {index:>4}  {line}")


async def cmd_search(ctx: "ShellContext", parsed: "ParsedCommand") -> None:
    """Search module commands by name, description, or category"""
    if not parsed.args:
        raise UsageError("Usage: search <query>", command_name="search")
    query = " ".join(parsed.args)
    matches = ctx.registry.find_commands(query)
    if not matches:
        print(f'No commands match "{query}"')
        return
    for module_name, command in matches:
        print(f"  {module_name} {command.name:<16} {command.description}")


def build_builtin_table() -> BuiltinTable:
    """Create the default built-in table."""
    table = BuiltinTable()
    table.register("help", cmd_help, usage="help [module]")
    table.register("status", cmd_status)
    table.register("clear", cmd_clear)
    table.register("theme", cmd_theme, usage="theme [show|list|set <name>]", subcommands=["set", "list", "show"])
    table.register("config", cmd_config, usage="config [show|set <key> <value>]", subcommands=["show", "set"])
    table.register("exit", cmd_exit, aliases=["quit"], usage="exit | quit")
    table.register("modules", cmd_modules)
    table.register("health", cmd_health)
    table.register("history", cmd_history)
    table.register("search", cmd_search, usage="search <query>")
    return table
