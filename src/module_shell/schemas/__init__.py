"""Schema exports."""

from .base import SchemaBase
from .manifest import ModuleManifestEntry
from .module import (
    CapabilityModule,
    Category,
    Command,
    FlagSpec,
    FlagType,
    FlagValue,
    Handler,
    UnknownFlagPolicy,
)
from .status import ModuleState, ModuleStatus, ValidationResult

__all__ = [
    "SchemaBase",
    "ModuleManifestEntry",
    "CapabilityModule",
    "Category",
    "Command",
    "FlagSpec",
    "FlagType",
    "FlagValue",
    "Handler",
    "UnknownFlagPolicy",
    "ModuleState",
    "ModuleStatus",
    "ValidationResult",
]
