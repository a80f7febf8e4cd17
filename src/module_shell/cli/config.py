"""
Shell configuration.

Handles loading of the shell configuration from a YAML file.
"""

import os
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from module_shell.exceptions import ConfigError, UsageError

CONFIG_ENV_VAR = "MODULE_SHELL_CONFIG"


@dataclass
class ShellConfig:
    """Interactive shell configuration."""

    prompt: str = "shell"
    theme: str = "default"
    history_limit: Optional[int] = 1000
    scroll_batch: int = 10
    force_exit_window: float = 2.0
    log_file: Optional[str] = None
    log_level: str = "INFO"
    modules_manifest: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ShellConfig":
        """Create from dictionary, using defaults for missing fields."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Shell config must be a mapping")
        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            raise ConfigError("Shell config 'settings' must be a mapping")
        try:
            return cls(
                prompt=str(data.get("prompt", "shell")),
                theme=str(data.get("theme", "default")),
                history_limit=_optional_int(data.get("history_limit", 1000)),
                scroll_batch=int(data.get("scroll_batch", 10)),
                force_exit_window=float(data.get("force_exit_window", 2.0)),
                log_file=data.get("log_file"),
                log_level=str(data.get("log_level", "INFO")).upper(),
                modules_manifest=data.get("modules_manifest"),
                settings=dict(settings),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid shell config value: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def set_value(self, key: str, raw: str) -> Any:
        """
        Set a config value in memory.

        Known fields are converted to their declared type; any other key is
        stored under ``settings``.

        Returns:
            The stored value

        Raises:
            UsageError: If the value does not convert to the field's type
        """
        known = {f.name for f in fields(self)} - {"settings"}
        if key not in known:
            self.settings[key] = raw
            return raw

        current = getattr(self, key)
        try:
            if key == "history_limit":
                value: Any = _optional_int(raw)
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            else:
                value = raw
        except ValueError:
            raise UsageError(f"Invalid value for '{key}': {raw}", command_name="config")
        setattr(self, key, value)
        return value


def _optional_int(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and value.lower() in ("none", "null", "")):
        return None
    return int(value)


def default_config_path() -> Optional[Path]:
    """Config path named by the MODULE_SHELL_CONFIG environment variable."""
    value = os.environ.get(CONFIG_ENV_VAR)
    return Path(value).expanduser() if value else None


def load_config(path: Optional[Union[str, Path]] = None) -> ShellConfig:
    """
    Load shell configuration from a YAML file.

    Args:
        path: Config file path; defaults to $MODULE_SHELL_CONFIG

    Returns:
        ShellConfig (defaults when no file exists)

    Raises:
        ConfigError: If the YAML is malformed or values are invalid
    """
    config_path = Path(path).expanduser() if path else default_config_path()
    if config_path is None or not config_path.exists():
        return ShellConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {config_path.name}: {e}", path=str(config_path))
    except IOError as e:
        raise ConfigError(f"Failed to read {config_path.name}: {e}", path=str(config_path))

    try:
        return ShellConfig.from_dict(data)
    except ConfigError as e:
        e.path = str(config_path)
        raise
