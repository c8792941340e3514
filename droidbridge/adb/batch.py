"""Grouping of shell commands into as few adb invocations as possible."""

from typing import List, Sequence

COMMAND_SEPARATOR = " && "
DEFAULT_COMMAND_LENGTH_LIMIT = 1024


def batch_commands(commands: Sequence[str], limit: int = DEFAULT_COMMAND_LENGTH_LIMIT) -> List[str]:
    """Join commands with ``&&`` into batches no longer than ``limit``.

    Greedy single pass in caller order. A command longer than the limit on its
    own still gets a batch of its own, so nothing is ever dropped. Because of
    the ``&&`` chaining, one failing command aborts the rest of its batch.
    """
    batches: List[str] = []
    current: List[str] = []
    length = 0

    for command in commands:
        added = len(command) + (len(COMMAND_SEPARATOR) if current else 0)
        if current and length + added > limit:
            batches.append(COMMAND_SEPARATOR.join(current))
            current = [command]
            length = len(command)
        else:
            current.append(command)
            length += added

    if current:
        batches.append(COMMAND_SEPARATOR.join(current))

    return batches
