"""Module registry: validated storage and lifecycle for capability modules."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Optional, Tuple

from module_shell.exceptions import InitializationError, NotFoundError, RegistrationError
from module_shell.schemas import (
    CapabilityModule,
    Command,
    ModuleState,
    ModuleStatus,
    ValidationResult,
)
from module_shell.schemas.status import utc_now

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """Manages registered capability modules and their status records.

    Provides:
    - Structural validation at registration
    - One status record per module, written only by this class
    - Concurrent health checks and initialization with per-module isolation
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._modules: Dict[str, CapabilityModule] = {}
        self._ui_bindings: Dict[str, Any] = {}
        self._statuses: Dict[str, ModuleStatus] = {}

    def register(self, name: str, module: CapabilityModule) -> None:
        """Validate and register a module.

        Args:
            name: Registry key for the module
            module: Capability module instance

        Raises:
            RegistrationError: If the module fails structural validation. An
                error status record is still written for ``name``.
        """
        result = self.validate_module(module)
        if not result.is_valid:
            summary = f"Module validation failed: {result.summary()}"
            self._modules.pop(name, None)
            self._ui_bindings.pop(name, None)
            self._statuses[name] = ModuleStatus(
                name=name,
                status=ModuleState.ERROR,
                version=str(getattr(module, "version", "") or "unknown"),
                error=summary,
            )
            logger.warning("Rejected module '%s': %s", name, summary)
            raise RegistrationError(
                message=summary,
                module=name,
                errors=list(result.errors),
                warnings=list(result.warnings),
            )

        if name in self._modules:
            logger.warning("Module '%s' already registered, replacing with new instance", name)

        for warning in result.warnings:
            logger.warning("Module '%s': %s", name, warning)

        self._modules[name] = module
        ui = getattr(module, "ui", None)
        if ui is not None:
            self._ui_bindings[name] = ui
        else:
            self._ui_bindings.pop(name, None)
        self._statuses[name] = self._active_status(name, module)
        logger.debug("Registered module '%s' (%d commands)", name, len(module.commands))

    def unregister(self, name: str) -> None:
        """Remove a module, its UI binding and its status record."""
        self._modules.pop(name, None)
        self._ui_bindings.pop(name, None)
        self._statuses.pop(name, None)

    def get(self, name: str) -> Optional[CapabilityModule]:
        return self._modules.get(name)

    def get_all(self) -> Dict[str, CapabilityModule]:
        return dict(self._modules)

    def list(self) -> List[str]:
        """List registered module names in registration order."""
        return list(self._modules.keys())

    def get_ui(self, name: str) -> Optional[Any]:
        return self._ui_bindings.get(name)

    def get_safe(self, name: str) -> CapabilityModule:
        """Get a module or raise.

        Raises:
            NotFoundError: If no module is registered under ``name``
        """
        module = self._modules.get(name)
        if module is None:
            raise NotFoundError(f"Module '{name}' not found", module=name)
        return module

    def get_ui_safe(self, name: str) -> Any:
        """Get a module's UI component or raise.

        Raises:
            NotFoundError: If the module has no UI binding
        """
        ui = self._ui_bindings.get(name)
        if ui is None:
            raise NotFoundError(f"UI component for module '{name}' not found", module=name)
        return ui

    def get_status(self, name: str) -> Optional[ModuleStatus]:
        return self._statuses.get(name)

    def get_all_statuses(self) -> Dict[str, ModuleStatus]:
        return dict(self._statuses)

    def is_active(self, name: str) -> bool:
        status = self._statuses.get(name)
        return status is not None and status.status is ModuleState.ACTIVE

    def find_commands(self, query: str) -> List[Tuple[str, Command]]:
        """Search commands across modules by name, description or category.

        Returns:
            List of (module name, command) pairs in registration order
        """
        needle = query.lower()
        matches = []
        for module_name, module in self._modules.items():
            for command in module.commands:
                haystack = (command.name, command.description, command.category)
                if any(needle in text.lower() for text in haystack):
                    matches.append((module_name, command))
        return matches

    async def health_check(self) -> Dict[str, ModuleStatus]:
        """Run every module's validate() hook concurrently.

        A failing module only affects its own status record.

        Returns:
            Full status map after the check
        """
        names = list(self._modules.keys())
        await asyncio.gather(*(self._check_module(name) for name in names))
        return self.get_all_statuses()

    async def initialize_all(self) -> None:
        """Run every module's initialize() hook concurrently.

        Raises:
            InitializationError: After all hooks settle, naming every module
                whose hook raised
        """
        names = list(self._modules.keys())
        outcomes = await asyncio.gather(*(self._initialize_module(name) for name in names))
        failures = {name: error for name, error in zip(names, outcomes) if error is not None}
        if failures:
            joined = ", ".join(f"{name}: {error}" for name, error in failures.items())
            raise InitializationError(
                message=f"Failed to initialize {len(failures)} module(s): {joined}",
                failures=failures,
            )

    async def _check_module(self, name: str) -> None:
        module = self._modules[name]
        try:
            outcome = await _call_hook(module, "validate")
            if outcome is False:
                raise RuntimeError("Validation failed")
            if isinstance(outcome, ValidationResult) and not outcome.is_valid:
                raise RuntimeError(f"Validation failed: {outcome.summary()}")
        except Exception as exc:
            logger.warning("Health check failed for module '%s': %s", name, exc)
            self._statuses[name] = self._error_status(name, module, str(exc))
            return
        self._statuses[name] = self._active_status(name, module)

    async def _initialize_module(self, name: str) -> Optional[str]:
        module = self._modules[name]
        try:
            await _call_hook(module, "initialize")
        except Exception as exc:
            logger.error("Failed to initialize module '%s': %s", name, exc, exc_info=True)
            current = self._statuses.get(name) or self._active_status(name, module)
            self._statuses[name] = current.model_copy(
                update={"status": ModuleState.ERROR, "error": str(exc), "last_check": utc_now()}
            )
            return str(exc) or exc.__class__.__name__
        current = self._statuses.get(name) or self._active_status(name, module)
        self._statuses[name] = current.model_copy(
            update={"status": ModuleState.ACTIVE, "error": None, "last_check": utc_now()}
        )
        return None

    @staticmethod
    def _active_status(name: str, module: CapabilityModule) -> ModuleStatus:
        return ModuleStatus(
            name=name,
            status=ModuleState.ACTIVE,
            version=module.version,
            commands=len(module.commands),
            categories=len(module.categories),
        )

    @staticmethod
    def _error_status(name: str, module: CapabilityModule, error: str) -> ModuleStatus:
        return ModuleStatus(
            name=name,
            status=ModuleState.ERROR,
            version=module.version,
            error=error,
        )

    @staticmethod
    def validate_module(module: Any) -> ValidationResult:
        """Check a module's structural contract without registering it."""
        errors: List[str] = []
        warnings: List[str] = []

        for attr in ("name", "description", "version"):
            if not getattr(module, attr, None):
                errors.append(f"Module {attr} is required")

        commands = getattr(module, "commands", None)
        if not isinstance(commands, (list, tuple)) or not commands:
            errors.append("Module commands must be a non-empty list")
            commands = []

        categories = getattr(module, "categories", None)
        if not isinstance(categories, (list, tuple)):
            errors.append("Module categories must be a list")
            categories = []
        labels = {getattr(category, "label", category) for category in categories}

        seen: Dict[str, int] = {}
        for index, command in enumerate(commands):
            command_name = getattr(command, "name", None)
            ref = command_name or index
            if not command_name:
                errors.append(f"Command at index {index} missing name")
            if not getattr(command, "handler", None):
                errors.append(f"Command {ref} missing handler")
            category = getattr(command, "category", "")
            if not category:
                errors.append(f"Command {ref} missing category")
            elif category not in labels:
                errors.append(f"Command {ref} category '{category}' is not declared")
            if not getattr(command, "usage", ""):
                warnings.append(f"Command {ref} missing usage")
            for alias in [command_name, *getattr(command, "aliases", [])]:
                if alias:
                    seen[alias] = seen.get(alias, 0) + 1

        duplicates = [name for name, count in seen.items() if count > 1]
        if duplicates:
            errors.append(f"Duplicate command names found: {', '.join(duplicates)}")

        for category in categories:
            declared = getattr(category, "command_count", None)
            if declared is None:
                continue
            actual = sum(1 for command in commands if getattr(command, "category", None) == category.label)
            if declared != actual:
                warnings.append(
                    f"Category '{category.label}' declares {declared} commands but has {actual}"
                )

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


async def _call_hook(module: Any, hook_name: str) -> Any:
    hook = getattr(module, hook_name, None)
    if hook is None:
        return None
    outcome = hook()
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome
