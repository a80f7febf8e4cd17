"""Shared utilities."""

from .logging_utils import configure_logging, rotate_log_if_needed

__all__ = ["configure_logging", "rotate_log_if_needed"]
