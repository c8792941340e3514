"""Execution of adb commands with disconnection recovery."""

import asyncio
from functools import partial
from typing import Awaitable, Callable, List, Optional, Sequence

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, stop_never, wait_none

from .batch import batch_commands
from .errors import (
    AdbError,
    BridgeNotFoundError,
    DeviceDisconnectedError,
    DisconnectionType,
    classify_disconnection,
)
from .locator import ExecutableLocator
from .process import ProcessOutput, ProcessRunner, invoke_and_capture
from ..config import BridgeConfig
from ..util.logging import get_logger
from ..util.paths import escape_proc

logger = get_logger(__name__)

DisconnectionHandler = Callable[[DisconnectionType], Awaitable[None]]


class DebugBridge:
    """Runs adb commands against the single connected device.

    Failures caused by a missing, offline, unauthorized or ambiguous device
    are reported to ``on_disconnect`` and the command is retried once the
    handler returns. The handler decides how long to wait, and can abort the
    whole operation by raising or by cancelling the calling task.
    """

    def __init__(
        self,
        locator: ExecutableLocator,
        on_disconnect: DisconnectionHandler,
        config: Optional[BridgeConfig] = None,
        runner: Optional[ProcessRunner] = None
    ):
        self.locator = locator
        self.on_disconnect = on_disconnect
        self.config = config or BridgeConfig()
        if runner is None:
            runner = partial(invoke_and_capture, timeout=self.config.command_timeout)
        self._runner = runner
        self._adb_path: Optional[str] = None
        self._resolve_lock = asyncio.Lock()

    @property
    def adb_path(self) -> Optional[str]:
        """The resolved adb executable, or None before the first command."""
        return self._adb_path

    def reset_adb_path(self) -> None:
        """Forget the resolved executable so the next command looks it up again."""
        self._adb_path = None

    async def prepare_adb_path(self) -> str:
        """Resolve the adb executable, at most once per bridge."""
        async with self._resolve_lock:
            if self._adb_path is not None:
                return self._adb_path

            if self.config.adb_path:
                self._adb_path = self.config.adb_path
                logger.info(f"Using configured adb at {self._adb_path}")
                return self._adb_path

            name = self.config.adb_executable_name
            try:
                await self._runner(name, "version")
                self._adb_path = name
                logger.info("Located adb install on PATH")
            except FileNotFoundError:
                logger.debug(f"{name} is not on PATH, asking the locator")
                try:
                    self._adb_path = await self.locator.get_adb_path()
                except OSError as e:
                    raise BridgeNotFoundError(f"Could not obtain adb: {e}") from e

            return self._adb_path

    def _is_success(self, output: ProcessOutput, allowed_exit_codes: Sequence[int]) -> bool:
        return (
            output.exit_code == 0
            or output.exit_code in allowed_exit_codes
            or output.exit_code in self.config.spurious_success_exit_codes
        )

    async def _run_once(self, adb_path: str, command: str, allowed_exit_codes: Sequence[int]) -> ProcessOutput:
        output = await self._runner(adb_path, command)
        logger.debug(f"Standard output: {output.standard_output!r}")
        if output.error_output:
            logger.debug(f"Error output: {output.error_output!r}")
        logger.debug(f"Exit code: {output.exit_code}")

        if self._is_success(output, allowed_exit_codes):
            return output

        disconnection = classify_disconnection(output.standard_output, output.error_output)
        if disconnection is None:
            raise AdbError(output.all_output)

        logger.warning(f"Device unavailable ({disconnection.value}) while running: adb {command}")
        await self.on_disconnect(disconnection)
        raise DeviceDisconnectedError(disconnection, output.all_output)

    async def run(self, command: str, *allowed_exit_codes: int) -> ProcessOutput:
        """Run ``adb <command>`` and return its output.

        Exit code 0, any of ``allowed_exit_codes`` and the configured spurious
        success codes count as success. Disconnections are retried after the
        handler returns; any other failure raises AdbError.
        """
        adb_path = self._adb_path
        if adb_path is None:
            adb_path = await self.prepare_adb_path()

        logger.debug(f"Executing adb command: adb {command}")

        max_retries = self.config.max_disconnect_retries
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(DeviceDisconnectedError),
            stop=stop_never if max_retries is None else stop_after_attempt(max_retries),
            wait=wait_none(),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                output = await self._run_once(adb_path, command, allowed_exit_codes)
        return output

    async def run_shell(self, command: str, *allowed_exit_codes: int) -> ProcessOutput:
        """Run a command in the device shell."""
        return await self.run(f"shell {escape_proc(command)}", *allowed_exit_codes)

    async def run_shell_batch(self, commands: List[str]) -> None:
        """Run many shell commands in as few adb calls as the length limit allows.

        Batches run in order. Any failure aborts the remaining batches and is
        reported as a single AdbError for the whole batch.
        """
        if not commands:
            return

        batches = batch_commands(commands, self.config.command_length_limit)
        logger.debug(f"Running {len(commands)} shell commands in {len(batches)} batches")
        for batch in batches:
            await self.run_shell(batch)

    async def kill_server(self) -> None:
        """Stop the adb server process."""
        await self.run("kill-server")
