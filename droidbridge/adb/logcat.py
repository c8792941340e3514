"""Streaming of the device log to a file."""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Union

from .bridge import DebugBridge
from .process import spawn_streaming
from ..util.logging import get_logger

logger = get_logger(__name__)

StoppedListener = Callable[["LogcatRecorder"], None]

# logcat lines have no length cap, so the pipe is read in chunks rather than with readline
READ_CHUNK_SIZE = 64 * 1024


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r")


class LogcatRecorder:
    """Writes ``adb logcat`` output to a file line by line as it arrives.

    Only one session runs at a time. Listeners registered with
    ``add_stopped_listener`` are called once when a session ends, whether
    it was stopped or adb exited by itself.
    """

    def __init__(self, bridge: DebugBridge):
        self.bridge = bridge
        self._process: Optional[asyncio.subprocess.Process] = None
        self._output: Optional[TextIO] = None
        self._reader: Optional[asyncio.Task] = None
        self._listeners: List[StoppedListener] = []

    @property
    def is_logging(self) -> bool:
        return self._reader is not None and not self._reader.done()

    def add_stopped_listener(self, listener: StoppedListener) -> None:
        self._listeners.append(listener)

    def remove_stopped_listener(self, listener: StoppedListener) -> None:
        self._listeners.remove(listener)

    async def start_logging(self, log_file: Union[str, Path]) -> None:
        """Start saving the device log to ``log_file``, overwriting it."""
        adb_path = self.bridge.adb_path
        if adb_path is None:
            adb_path = await self.bridge.prepare_adb_path()

        output = open(log_file, "w", encoding="utf-8")
        try:
            process = await spawn_streaming(adb_path, "logcat")
        except OSError:
            output.close()
            raise

        self._output = output
        self._process = process
        self._reader = asyncio.create_task(self._pump(process, output))
        logger.info(f"Saving device log to {log_file}")

    def stop_logging(self) -> None:
        """Stop the running logcat, if there is one, and close its file.

        Output still buffered in the pipe when adb is killed is discarded.
        """
        if self._process is not None and self._process.returncode is None:
            self._process.kill()
        if self._output is not None:
            self._output.close()

    async def wait_stopped(self) -> None:
        """Wait for the current session to finish and its file to be closed."""
        if self._reader is not None:
            await self._reader

    def _write_line(self, output: TextIO, line: str) -> None:
        if output.closed:
            logger.debug("adb sent log data after the log file was closed")
            return
        output.write(line)
        output.write("\n")

    def _notify_stopped(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"Logcat stopped listener {listener!r} failed")

    async def _pump(self, process: asyncio.subprocess.Process, output: TextIO) -> None:
        pending = b""
        try:
            while True:
                chunk = await process.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                *lines, pending = (pending + chunk).split(b"\n")
                for line in lines:
                    self._write_line(output, _decode(line))
            if pending:
                self._write_line(output, _decode(pending))
            await process.wait()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()
            output.close()
            logger.info(f"Logcat exited with code {process.returncode}")
            self._notify_stopped()
