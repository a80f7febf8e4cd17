"""
Command routing for the interactive shell.

Parses input lines, resolves them to built-ins or module commands, and
computes tab completions.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from module_shell.exceptions import NotFoundError
from module_shell.registry import ModuleRegistry
from module_shell.schemas import Command, FlagValue

from .builtins import BuiltinCommand, BuiltinTable

if TYPE_CHECKING:
    from .context import ShellContext

HELP_HINT = 'Type "help" to see available commands'


@dataclass
class ParsedCommand:
    """A parsed input line."""

    name: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, FlagValue] = field(default_factory=dict)
    raw: str = ""


def parse_line(line: str) -> Optional[ParsedCommand]:
    """
    Parse an input line.

    Tokens are whitespace separated. ``--name value`` gives a string value;
    ``--name`` followed by nothing or by another ``--flag`` gives True;
    ``--name=value`` is the single-token form.

    Returns:
        ParsedCommand, or None for a blank line
    """
    return parse_tokens(line.split(), raw=line)


def parse_tokens(tokens: List[str], raw: str = "") -> Optional[ParsedCommand]:
    """Parse pre-split tokens; see parse_line()."""
    if not tokens:
        return None

    args: List[str] = []
    flags: Dict[str, FlagValue] = {}
    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token.startswith("--") and len(token) > 2:
            key = token[2:]
            if "=" in key:
                key, value = key.split("=", 1)
                flags[key] = value
            elif i + 1 < len(tokens) and not tokens[i + 1].startswith("--"):
                flags[key] = tokens[i + 1]
                i += 1
            else:
                flags[key] = True
        else:
            args.append(token)
        i += 1

    return ParsedCommand(name=tokens[0], args=args, flags=flags, raw=raw or " ".join(tokens))


@dataclass
class Route:
    """A resolved command ready to run."""

    name: str
    builtin: Optional[BuiltinCommand] = None
    module_name: Optional[str] = None
    command: Optional[Command] = None
    flags: Dict[str, FlagValue] = field(default_factory=dict)
    parsed: Optional[ParsedCommand] = None

    @property
    def is_builtin(self) -> bool:
        return self.builtin is not None

    async def run(self, ctx: "ShellContext") -> None:
        if self.builtin is not None:
            await self.builtin.func(ctx, self.parsed)
        else:
            await self.command.handler(self.flags)


class CommandRouter:
    """
    Resolves parsed commands against built-ins first, then the registry.
    """

    def __init__(self, registry: ModuleRegistry, builtins: BuiltinTable):
        self.registry = registry
        self.builtins = builtins

    def resolve(self, parsed: ParsedCommand) -> Route:
        """
        Resolve a parsed command.

        Raises:
            NotFoundError: For unknown names, inactive modules and unknown
                module commands
            UsageError: If arguments do not bind to the command's parameters
        """
        builtin = self.builtins.get(parsed.name)
        if builtin is not None:
            return Route(name=builtin.name, builtin=builtin, parsed=parsed)

        module = self.registry.get(parsed.name)
        if module is None:
            raise NotFoundError(f'Unknown command: "{parsed.name}"')

        if not self.registry.is_active(parsed.name):
            status = self.registry.get_status(parsed.name)
            detail = f" ({status.error})" if status and status.error else ""
            raise NotFoundError(f"Module '{parsed.name}' is not active{detail}", module=parsed.name)

        if not parsed.args:
            help_command = self.builtins.get("help")
            if help_command is not None:
                help_parsed = ParsedCommand(name="help", args=[parsed.name], raw=parsed.raw)
                return Route(name="help", builtin=help_command, parsed=help_parsed)
            raise NotFoundError(f"Module '{parsed.name}' needs a command", module=parsed.name)

        subcommand, rest = parsed.args[0], parsed.args[1:]
        command = module.get_command(subcommand)
        if command is None:
            raise NotFoundError(
                f"Unknown command '{subcommand}' for module '{parsed.name}'",
                module=parsed.name,
            )

        flags = command.bind(rest, parsed.flags)
        return Route(
            name=f"{parsed.name} {command.name}",
            module_name=parsed.name,
            command=command,
            flags=flags,
            parsed=parsed,
        )

    def top_level_names(self) -> List[str]:
        names = list(self.builtins.names())
        names.extend(name for name in self.registry.list() if name not in names)
        return names

    def complete(self, line: str) -> List[str]:
        """
        Completion candidates for the last token of ``line``.

        One token: built-in and module names. Two tokens: the first module's
        command names, or a built-in's subcommands. Otherwise nothing.
        """
        tokens = line.split()
        if not tokens or line[-1:].isspace():
            tokens.append("")

        if len(tokens) == 1:
            prefix = tokens[0]
            return sorted(name for name in self.top_level_names() if name.startswith(prefix))

        if len(tokens) == 2:
            first, prefix = tokens
            module = self.registry.get(first)
            if module is not None:
                names = [name for command in module.commands for name in command.names]
            else:
                builtin = self.builtins.get(first)
                names = list(builtin.subcommands) if builtin else []
            return sorted(name for name in dict.fromkeys(names) if name.startswith(prefix))

        return []


def common_prefix(candidates: List[str]) -> str:
    if not candidates:
        return ""
    first, last = min(candidates), max(candidates)
    size = 0
    while size < len(first) and first[size] == last[size]:
        size += 1
    return first[:size]


def apply_completion(line: str, candidates: List[str]) -> str:
    """
    Apply candidates to the last token of ``line``.

    A single candidate replaces the token and appends a space; several extend
    the token to their common prefix.
    """
    if not candidates:
        return line
    token = "" if not line or line[-1].isspace() else line.split()[-1]
    head = line[: len(line) - len(token)]
    if len(candidates) == 1:
        return f"{head}{candidates[0]} "
    prefix = common_prefix(candidates)
    return f"{head}{prefix}" if len(prefix) > len(token) else line
