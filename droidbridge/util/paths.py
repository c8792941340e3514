"""Path normalization and escaping for remote (device) paths."""

import posixpath
import shlex
from typing import Tuple


def normalize_slashes(path: str) -> str:
    """Convert host path separators to forward slashes.

    The device filesystem is always POSIX style, whatever the host OS is.
    """
    return path.replace("\\", "/")


def escape_shell(value: str) -> str:
    """Quote a value so the device's POSIX shell reads it back verbatim."""
    return shlex.quote(value)


def escape_proc(value: str) -> str:
    """Quote a value as one argument of the adb process command line.

    The command line is split with POSIX ``shlex`` rules before the process is
    spawned, and no shell sees it, so only backslashes and double quotes need
    escaping inside a double-quoted token.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def remote_join(base: str, name: str) -> str:
    """Join a device directory and an entry name."""
    return posixpath.join(normalize_slashes(base), name)


def remote_split(path: str) -> Tuple[str, str]:
    """Split a device path into (directory, basename)."""
    return posixpath.split(normalize_slashes(path))
