"""Module status and validation result schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo

from pydantic import Field

from .base import SchemaBase


def utc_now() -> datetime:
    return datetime.now(ZoneInfo("UTC"))


class ModuleState(str, Enum):
    ACTIVE = "active"
    ERROR = "error"


class ModuleStatus(SchemaBase):
    """Registry-held record of whether a module is currently usable."""

    name: str
    status: ModuleState
    version: str = Field(default="unknown")
    last_check: datetime = Field(default_factory=utc_now)
    commands: int = Field(default=0)
    categories: int = Field(default=0)
    error: Optional[str] = Field(default=None)

    @property
    def is_active(self) -> bool:
        return self.status is ModuleState.ACTIVE


class ValidationResult(SchemaBase):
    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def summary(self) -> str:
        return ", ".join(self.errors)
