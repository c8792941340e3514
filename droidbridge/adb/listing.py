"""Parsing of ``ls -p`` directory listings."""

from typing import List

from .errors import AdbError
from .process import ProcessOutput
from ..util.paths import remote_join

# ls exits with 1 for an empty directory on some devices
EMPTY_LISTING_EXIT_CODE = 1


def listing_text(output: ProcessOutput) -> str:
    """Return the listing from an ``ls -p`` call run with exit code 1 allowed.

    Exit code 1 is only acceptable when nothing was listed; any other
    non-zero result with output is a genuine failure.
    """
    text = output.standard_output
    if output.exit_code != 0:
        if text.strip():
            raise AdbError(output.all_output)
        return ""
    return text


def parse_entries(
    listing: str,
    base_path: str,
    names_only: bool = False,
    directories: bool = False
) -> List[str]:
    """Extract file or directory entries from one directory's ``ls -p`` output.

    ``ls -p`` marks directories with a trailing slash, which is stripped from
    the result. A line ending in ``:`` starts a nested listing and ends
    parsing. Unless ``names_only`` is set, entries are joined onto
    ``base_path``.
    """
    entries = []
    for raw_line in listing.split("\n"):
        line = raw_line.rstrip("\r")
        if not line:
            continue
        if line.endswith(":"):
            break

        is_directory = line.endswith("/")
        if is_directory != directories:
            continue

        name = line.rstrip("/") if is_directory else line
        entries.append(name if names_only else remote_join(base_path, name))

    return entries
