"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import (
    escape_proc,
    escape_shell,
    normalize_slashes,
    remote_join,
    remote_split,
)

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "escape_proc",
    "escape_shell",
    "normalize_slashes",
    "remote_join",
    "remote_split",
]
