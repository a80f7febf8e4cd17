"""Module manifest schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ModuleManifestEntry:
    """Module entry from modules.yaml."""

    id: str
    module: str
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate manifest entry.

        Raises:
            ValueError: If the entry is invalid
        """
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Module id required and must be string")
        if not self.module or not isinstance(self.module, str):
            raise ValueError("Module path required and must be string")
        if not isinstance(self.enabled, bool):
            raise ValueError("Module enabled must be boolean")
        if not isinstance(self.config, dict):
            raise ValueError("Module config must be dict")
