"""Core utilities for the subway accessibility build."""

from .logging import configure_logging, logger, ProgressReporter
from .io import setup_logging, read_any_csv, read_json, require_columns, sanitize_value, write_json

__all__ = [
    "configure_logging",
    "logger",
    "ProgressReporter",
    "setup_logging",
    "read_any_csv",
    "read_json",
    "require_columns",
    "sanitize_value",
    "write_json",
]
