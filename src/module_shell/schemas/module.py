"""Capability module, command and flag schemas."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import Field

from module_shell.exceptions import UsageError

from .base import SchemaBase

logger = logging.getLogger(__name__)

FlagValue = Union[str, int, float, bool]
Handler = Callable[[Dict[str, FlagValue]], Awaitable[None]]

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


class FlagType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class UnknownFlagPolicy(str, Enum):
    REJECT = "reject"
    IGNORE = "ignore"


class FlagSpec(SchemaBase):
    """A flag (or named positional) recognized by a command."""

    name: str
    type: FlagType = Field(default=FlagType.STRING)
    description: str = Field(default="")
    required: bool = Field(default=False)
    default: Optional[Any] = Field(default=None)
    choices: Optional[List[str]] = Field(default=None)

    def coerce(self, value: FlagValue, command_name: str = "") -> FlagValue:
        """Convert a raw parsed value to this flag's declared type.

        Raises:
            UsageError: If the value cannot be converted or is not an allowed choice
        """
        if self.type is FlagType.BOOLEAN:
            if isinstance(value, bool):
                return value
            lowered = str(value).lower()
            if lowered in _TRUE_WORDS:
                return True
            if lowered in _FALSE_WORDS:
                return False
            raise UsageError(f"Flag --{self.name} expects true/false, got '{value}'", command_name=command_name)

        if value is True:
            raise UsageError(f"Flag --{self.name} requires a value", command_name=command_name)

        if self.type is FlagType.INTEGER:
            try:
                result: FlagValue = int(value)
            except ValueError:
                raise UsageError(f"Flag --{self.name} expects an integer, got '{value}'", command_name=command_name)
        elif self.type is FlagType.NUMBER:
            try:
                result = float(value)
            except ValueError:
                raise UsageError(f"Flag --{self.name} expects a number, got '{value}'", command_name=command_name)
        else:
            result = str(value)

        if self.choices and str(result) not in self.choices:
            raise UsageError(
                f"Flag --{self.name} must be one of: {', '.join(self.choices)}",
                command_name=command_name,
            )
        return result


class Category(SchemaBase):
    label: str
    command_count: Optional[int] = Field(default=None)


@dataclass
class Command:
    """A named command exposed by a capability module.

    The handler receives the bound flag map: declared positionals and flags,
    coerced to their declared types, with defaults filled in.
    """

    name: str
    description: str
    handler: Optional[Handler]
    category: str = ""
    usage: str = ""
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    flags: List[FlagSpec] = field(default_factory=list)
    positionals: List[str] = field(default_factory=list)
    unknown_flags: UnknownFlagPolicy = UnknownFlagPolicy.REJECT

    @property
    def names(self) -> List[str]:
        return [self.name, *self.aliases]

    def bind(self, args: List[str], flags: Dict[str, FlagValue]) -> Dict[str, FlagValue]:
        """Bind positional tokens and parsed flags to this command's parameters.

        Args:
            args: Positional tokens following the command name
            flags: Raw flag map produced by the line parser

        Returns:
            Flag map passed to the handler

        Raises:
            UsageError: On unknown flags (under the reject policy), extra
                positionals, bad values or missing required parameters
        """
        specs = {spec.name: spec for spec in self.flags}
        bound: Dict[str, FlagValue] = {}

        if len(args) > len(self.positionals):
            extra = args[len(self.positionals):]
            if self.unknown_flags is UnknownFlagPolicy.REJECT:
                raise UsageError(f"Unexpected argument(s): {' '.join(extra)}", command_name=self.name)
            logger.debug("Ignoring extra arguments for %s: %s", self.name, extra)

        for name, value in zip(self.positionals, args):
            spec = specs.get(name)
            bound[name] = spec.coerce(value, self.name) if spec else value

        for name, value in flags.items():
            spec = specs.get(name)
            if spec is None:
                if self.unknown_flags is UnknownFlagPolicy.REJECT:
                    raise UsageError(f"Unknown flag '--{name}'", command_name=self.name)
                logger.debug("Ignoring unknown flag --%s for %s", name, self.name)
                continue
            bound[name] = spec.coerce(value, self.name)

        for spec in self.flags:
            if spec.name in bound:
                continue
            if spec.required:
                label = spec.name if spec.name in self.positionals else f"--{spec.name}"
                raise UsageError(f"Missing required parameter {label}", command_name=self.name)
            if spec.default is not None:
                bound[spec.name] = spec.default

        return bound


class CapabilityModule:
    """Base class for capability modules.

    Subclasses set ``name``, ``description`` and ``version``, fill ``commands``
    and ``categories`` after calling ``super().__init__()``, and may define
    ``initialize()`` and ``validate()`` hooks, sync or async. ``validate()`` may
    return a ValidationResult, a bool or None.
    """

    name: str = ""
    description: str = ""
    version: str = ""
    commands: List[Command]
    categories: List[Category]
    ui: Optional[Any] = None

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.commands = []
        self.categories = []

    def get_command(self, name: str) -> Optional[Command]:
        """Return the command with this name or alias."""
        for command in self.commands:
            if name in command.names:
                return command
        return None

    @property
    def category_labels(self) -> List[str]:
        return [category.label for category in self.categories]
