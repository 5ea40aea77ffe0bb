"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import ensure_directory, read_text_file, with_export_extension
from .process import run_command, run_text_command
from .timeutil import now_iso, parse_iso

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "ensure_directory",
    "read_text_file",
    "with_export_extension",
    # process
    "run_command",
    "run_text_command",
    # timeutil
    "now_iso",
    "parse_iso",
]
