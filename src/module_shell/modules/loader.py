"""Module loader for Module Shell."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from module_shell.exceptions import ConfigError, RegistrationError
from module_shell.registry import ModuleRegistry
from module_shell.schemas import CapabilityModule, ModuleManifestEntry

logger = logging.getLogger(__name__)

DEFAULT_MODULES = ["module_shell.modules.toolbox.ToolboxModule"]


class ModuleLoader:
    """Loads capability modules from a modules.yaml manifest."""

    def load_modules_from_yaml(self, yaml_path: Path) -> List[Tuple[str, CapabilityModule]]:
        """Load modules from a manifest file.

        Args:
            yaml_path: Path to modules.yaml

        Returns:
            List of (id, module instance) pairs, disabled entries skipped

        Raises:
            ConfigError: If the manifest is malformed or a module cannot be loaded
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise ConfigError(f"Module manifest not found: {yaml_path}", path=str(yaml_path))

        try:
            with open(yaml_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, IOError) as e:
            raise ConfigError(f"Failed to load {yaml_path.name}: {e}", path=str(yaml_path))

        if not isinstance(data, dict) or not isinstance(data.get("modules", []), list):
            raise ConfigError(f"{yaml_path.name} must contain a 'modules' list", path=str(yaml_path))

        loaded = []
        for entry_conf in data.get("modules", []):
            if not isinstance(entry_conf, dict):
                raise ConfigError(f"Invalid module entry in {yaml_path.name}: {entry_conf!r}", path=str(yaml_path))
            try:
                module = self._load_single_module(entry_conf)
            except ValueError as e:
                module_id = entry_conf.get("id", "unknown")
                raise ConfigError(f"Failed to load module '{module_id}': {e}", path=str(yaml_path))
            if module is not None:
                loaded.append((entry_conf["id"], module))

        return loaded

    def load_default_modules(self) -> List[Tuple[str, CapabilityModule]]:
        """Load the bundled modules."""
        loaded = []
        for path in DEFAULT_MODULES:
            module = self._load_single_module({"id": path.rsplit(".", 1)[-1], "module": path})
            loaded.append((module.name, module))
        return loaded

    def _load_single_module(self, entry_conf: dict) -> Optional[CapabilityModule]:
        """Load a single module instance.

        Returns:
            Module instance, or None if disabled

        Raises:
            ValueError: If the entry is invalid or the class cannot be imported
        """
        entry = ModuleManifestEntry(
            id=entry_conf.get("id"),
            module=entry_conf.get("module"),
            enabled=entry_conf.get("enabled", True),
            config=entry_conf.get("config") or {},
        )
        entry.validate()

        if not entry.enabled:
            logger.debug("Skipping disabled module '%s'", entry.id)
            return None

        module_path, class_name = self._parse_module_path(entry.module)

        try:
            py_module = importlib.import_module(module_path)
        except ImportError as e:
            raise ValueError(f"Cannot import module '{module_path}': {e}")

        try:
            module_class = getattr(py_module, class_name)
        except AttributeError as e:
            raise ValueError(f"Class '{class_name}' not found in module '{module_path}': {e}")

        if not isinstance(module_class, type) or not issubclass(module_class, CapabilityModule):
            raise ValueError(f"Class '{class_name}' does not inherit from CapabilityModule")

        try:
            return module_class(config=entry.config)
        except Exception as e:
            raise ValueError(f"Failed to instantiate module '{entry.id}': {e}")

    @staticmethod
    def _parse_module_path(module_str: str) -> Tuple[str, str]:
        """Parse "pkg.mod.ClassName" into (module path, class name).

        Raises:
            ValueError: If the format is invalid
        """
        parts = module_str.rsplit(".", 1)
        if len(parts) != 2:
            raise ValueError(
                f"Invalid module path: '{module_str}'. Expected format: 'module.path.ClassName'"
            )
        return parts[0], parts[1]


def register_modules(
    registry: ModuleRegistry,
    modules: List[Tuple[str, CapabilityModule]],
) -> Dict[str, str]:
    """Register modules, collecting rejections instead of stopping at the first.

    Returns:
        Map of rejected module name to validation summary
    """
    rejected = {}
    for name, module in modules:
        try:
            registry.register(name, module)
        except RegistrationError as e:
            rejected[name] = str(e)
    return rejected
