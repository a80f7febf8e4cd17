"""Named color themes for the shell."""

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Theme:
    """SGR parameter strings per role."""

    name: str
    primary: str
    accent: str
    success: str
    warning: str
    error: str
    muted: str

    def paint(self, role: str, text: str) -> str:
        code = getattr(self, role, "")
        if not code or not text:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"


THEMES: Dict[str, Theme] = {
    "default": Theme("default", "38;5;99", "38;5;141", "32", "33", "31", "90"),
    "neon": Theme("neon", "38;5;201", "38;5;51", "38;5;46", "38;5;226", "38;5;196", "38;5;244"),
    "matrix": Theme("matrix", "38;5;46", "38;5;40", "38;5;82", "38;5;148", "38;5;160", "38;5;22"),
    "mono": Theme("mono", "1", "4", "", "1", "7", "2"),
}


def theme_names() -> List[str]:
    return list(THEMES.keys())


def get_theme(name: str) -> Theme:
    """Return the named theme, falling back to ``default``."""
    return THEMES.get(name, THEMES["default"])
