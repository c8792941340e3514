"""Process invocation primitives built on asyncio subprocesses."""

import asyncio
import shlex
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from .errors import AdbError
from ..util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    """Captured result of one process invocation."""

    standard_output: str
    error_output: str
    exit_code: int

    @property
    def all_output(self) -> str:
        """Standard output followed by error output."""
        return self.standard_output + self.error_output


ProcessRunner = Callable[[str, str], Awaitable[ProcessOutput]]


def split_arguments(arguments: str) -> List[str]:
    """Split an argument string into argv entries using POSIX rules."""
    return shlex.split(arguments, posix=True)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        process.kill()
    await process.wait()


async def invoke_and_capture(
    executable: str,
    arguments: str,
    timeout: Optional[float] = None
) -> ProcessOutput:
    """Run an executable to completion and capture both output streams.

    Raises FileNotFoundError if the executable does not exist and AdbError if
    ``timeout`` elapses. Cancelling the awaiting task kills the child.
    """
    process = await asyncio.create_subprocess_exec(
        executable,
        *split_arguments(arguments),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        if timeout is None:
            stdout_bytes, stderr_bytes = await process.communicate()
        else:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        await _terminate(process)
        raise AdbError(f"{executable} {arguments} timed out after {timeout}s") from e
    except asyncio.CancelledError:
        logger.debug(f"Killing {executable} after cancellation")
        await _terminate(process)
        raise

    return ProcessOutput(
        standard_output=stdout_bytes.decode("utf-8", errors="replace"),
        error_output=stderr_bytes.decode("utf-8", errors="replace"),
        exit_code=int(process.returncode or 0),
    )


async def spawn_streaming(executable: str, arguments: str) -> asyncio.subprocess.Process:
    """Start a long running process whose standard output is piped for line reading."""
    return await asyncio.create_subprocess_exec(
        executable,
        *split_arguments(arguments),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
