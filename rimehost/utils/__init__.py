"""Utility helpers for the rime host."""

from .logging import configure_logging
from .paths import distribution_version, ensure_directory

__all__ = ["configure_logging", "distribution_version", "ensure_directory"]
