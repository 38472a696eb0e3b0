"""Utility helpers."""

from .logging import setup_logging, set_verbose

__all__ = ["setup_logging", "set_verbose"]
