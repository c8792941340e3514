"""Tests for the adb execution engine."""

import asyncio
import shlex
from unittest.mock import AsyncMock, MagicMock

import pytest

from droidbridge.adb import (
    AdbError,
    BridgeNotFoundError,
    DebugBridge,
    DeviceDisconnectedError,
    DisconnectionType,
    ProcessOutput,
)
from droidbridge.config import WINDOWS_SPURIOUS_EXIT_CODE, BridgeConfig

OFFLINE = ProcessOutput("", "adb: device offline\n", 1)
NO_DEVICE = ProcessOutput("", "adb: no devices/emulators found\n", 1)
OK = ProcessOutput("ok\n", "", 0)


class TestRun:
    """Test success and failure handling of single commands."""

    @pytest.mark.asyncio
    async def test_success(self, make_bridge):
        """Test exit code 0 returns the captured output."""
        bridge, runner = make_bridge(ProcessOutput("List of devices attached\n", "", 0))

        output = await bridge.run("devices")

        assert output.standard_output == "List of devices attached\n"
        assert runner.calls == [("adb", "devices")]

    @pytest.mark.asyncio
    async def test_allowed_exit_code(self, make_bridge):
        """Test caller allowed exit codes count as success."""
        bridge, _ = make_bridge(ProcessOutput("", "", 1))

        output = await bridge.run("shell \"ls -p /empty\"", 1)

        assert output.exit_code == 1

    @pytest.mark.asyncio
    async def test_spurious_exit_code_is_success(self, make_bridge):
        """Test the known bogus exit code is ignored whatever the output."""
        bridge, _ = make_bridge(ProcessOutput("", "error: something", WINDOWS_SPURIOUS_EXIT_CODE))

        output = await bridge.run("push a b")

        assert output.exit_code == WINDOWS_SPURIOUS_EXIT_CODE

    @pytest.mark.asyncio
    async def test_spurious_exit_codes_are_configurable(self, make_bridge):
        """Test the spurious exit code can be switched off."""
        bridge, _ = make_bridge(
            ProcessOutput("", "error: something", WINDOWS_SPURIOUS_EXIT_CODE),
            spurious_success_exit_codes=[],
        )

        with pytest.raises(AdbError):
            await bridge.run("push a b")

    @pytest.mark.asyncio
    async def test_unclassified_failure(self, make_bridge, handler):
        """Test other failures raise with the combined output."""
        bridge, runner = make_bridge(ProcessOutput("partial\n", "cp: /a: No such file or directory\n", 1))

        with pytest.raises(AdbError) as exc_info:
            await bridge.run("shell \"cp /a /b\"")

        assert exc_info.value.output == "partial\ncp: /a: No such file or directory\n"
        assert len(runner.calls) == 1
        assert handler.notified == []


class TestDisconnectionRecovery:
    """Test the retry loop around disconnections."""

    @pytest.mark.asyncio
    async def test_retries_after_handler(self, make_bridge, handler):
        """Test the handler is told once per failed attempt and the same command is retried."""
        bridge, runner = make_bridge(OFFLINE, OFFLINE, OK)

        output = await bridge.run("shell \"id\"")

        assert output == OK
        assert handler.notified == [DisconnectionType.DEVICE_OFFLINE, DisconnectionType.DEVICE_OFFLINE]
        assert runner.arguments == ["shell \"id\""] * 3

    @pytest.mark.asyncio
    async def test_type_reported_per_attempt(self, make_bridge, handler):
        """Test each attempt reports its own disconnection type."""
        bridge, _ = make_bridge(
            NO_DEVICE,
            ProcessOutput("", "adb: device unauthorized.\n", 1),
            OK,
        )

        await bridge.run("devices")

        assert handler.notified == [DisconnectionType.NO_DEVICE, DisconnectionType.UNAUTHORIZED]

    @pytest.mark.asyncio
    async def test_retry_ends_in_domain_error(self, make_bridge, handler):
        """Test a real failure after reconnecting still raises."""
        bridge, _ = make_bridge(NO_DEVICE, ProcessOutput("", "Permission denied", 1))

        with pytest.raises(AdbError):
            await bridge.run("shell \"cat /data/x\"")

        assert handler.notified == [DisconnectionType.NO_DEVICE]

    @pytest.mark.asyncio
    async def test_handler_can_abort(self, locator, scripted_runner):
        """Test an exception from the handler stops the retry loop."""
        runner = scripted_runner(NO_DEVICE, OK)
        abort = AsyncMock(side_effect=RuntimeError("user gave up"))
        bridge = DebugBridge(locator, abort, BridgeConfig(adb_path="adb"), runner=runner)

        with pytest.raises(RuntimeError, match="user gave up"):
            await bridge.run("devices")

        abort.assert_awaited_once_with(DisconnectionType.NO_DEVICE)
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_cancellation_stops_retrying(self, locator, scripted_runner):
        """Test cancelling the calling task ends an indefinite wait in the handler."""
        waiting = asyncio.Event()

        async def wait_forever(disconnection):
            waiting.set()
            await asyncio.Event().wait()

        runner = scripted_runner(NO_DEVICE)
        bridge = DebugBridge(locator, wait_forever, BridgeConfig(adb_path="adb"), runner=runner)

        task = asyncio.create_task(bridge.run("devices"))
        await waiting.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_optional_retry_limit(self, make_bridge, handler):
        """Test a configured retry cap raises DeviceDisconnectedError."""
        bridge, runner = make_bridge(NO_DEVICE, NO_DEVICE, NO_DEVICE, OK, max_disconnect_retries=2)

        with pytest.raises(DeviceDisconnectedError) as exc_info:
            await bridge.run("devices")

        assert exc_info.value.disconnection_type is DisconnectionType.NO_DEVICE
        assert len(runner.calls) == 2
        assert len(handler.notified) == 2


class TestAdbPathResolution:
    """Test lazy lookup of the adb executable."""

    @pytest.mark.asyncio
    async def test_uses_adb_on_path(self, make_bridge, locator):
        """Test adb is probed by bare name first."""
        bridge, runner = make_bridge(ProcessOutput("Android Debug Bridge version 1.0.41\n", "", 0), OK,
                                     adb_path=None, adb_executable_name="adb")

        await bridge.run("devices")

        assert runner.calls == [("adb", "version"), ("adb", "devices")]
        assert bridge.adb_path == "adb"
        locator.get_adb_path.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_to_locator(self, make_bridge, locator):
        """Test the locator is asked when adb is not on PATH."""
        bridge, runner = make_bridge(FileNotFoundError("adb"), OK, adb_path=None, adb_executable_name="adb")

        await bridge.run("devices")

        assert runner.calls[1] == ("/opt/platform-tools/adb", "devices")
        assert bridge.adb_path == "/opt/platform-tools/adb"

    @pytest.mark.asyncio
    async def test_resolves_once(self, make_bridge):
        """Test the resolved path is cached between commands."""
        bridge, runner = make_bridge(OK, OK, OK, adb_path=None, adb_executable_name="adb")

        await bridge.run("devices")
        await bridge.run("devices")

        assert runner.arguments == ["version", "devices", "devices"]

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_resolve_once(self, make_bridge):
        """Test racing first commands share one resolution."""
        bridge, runner = make_bridge(OK, OK, OK, adb_path=None, adb_executable_name="adb")

        await asyncio.gather(bridge.run("devices"), bridge.run("get-state"))

        assert runner.arguments.count("version") == 1

    @pytest.mark.asyncio
    async def test_reset(self, make_bridge):
        """Test resetting forces a new lookup."""
        bridge, runner = make_bridge(OK, OK, OK, OK, adb_path=None, adb_executable_name="adb")

        await bridge.run("devices")
        bridge.reset_adb_path()
        assert bridge.adb_path is None
        await bridge.run("devices")

        assert runner.arguments.count("version") == 2

    @pytest.mark.asyncio
    async def test_configured_path_skips_probe(self, make_bridge):
        """Test an explicit adb_path is used without probing."""
        bridge, runner = make_bridge(OK, adb_path="/usr/lib/android-sdk/platform-tools/adb")

        await bridge.run("devices")

        assert runner.calls == [("/usr/lib/android-sdk/platform-tools/adb", "devices")]

    @pytest.mark.asyncio
    async def test_locator_failure(self, make_bridge, locator):
        """Test resolution failures surface before any command runs."""
        locator.get_adb_path.side_effect = BridgeNotFoundError("no adb")
        bridge, runner = make_bridge(FileNotFoundError("adb"), adb_path=None)

        with pytest.raises(BridgeNotFoundError):
            await bridge.run("devices")

        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_locator_os_error_is_resolution_failure(self, make_bridge, locator):
        """Test OS errors from the locator become BridgeNotFoundError."""
        locator.get_adb_path.side_effect = PermissionError("denied")
        bridge, _ = make_bridge(FileNotFoundError("adb"), adb_path=None)

        with pytest.raises(BridgeNotFoundError):
            await bridge.run("devices")


class TestShellCommands:
    """Test shell command wrapping and batching."""

    @pytest.mark.asyncio
    async def test_run_shell_escapes_command(self, make_bridge):
        """Test the shell command is passed as a single argument."""
        bridge, runner = make_bridge(OK)

        await bridge.run_shell("ls -p '/sdcard/My Mods'")

        assert runner.arguments == ["shell \"ls -p '/sdcard/My Mods'\""]
        assert shlex.split(runner.arguments[0]) == ["shell", "ls -p '/sdcard/My Mods'"]

    @pytest.mark.asyncio
    async def test_run_shell_allowed_exit_codes(self, make_bridge):
        """Test allowed exit codes are forwarded."""
        bridge, _ = make_bridge(ProcessOutput("", "", 1))

        output = await bridge.run_shell("ls -p /empty", 1)

        assert output.exit_code == 1

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, make_bridge):
        """Test no commands means no adb calls, not even a lookup."""
        bridge, runner = make_bridge(adb_path=None)

        await bridge.run_shell_batch([])

        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_batches_run_in_order(self, make_bridge):
        """Test batches follow the length limit and caller order."""
        bridge, runner = make_bridge(OK, OK, command_length_limit=22)

        await bridge.run_shell_batch(["echo aaaa", "echo bbbb", "echo cccc"])

        assert runner.arguments == ["shell \"echo aaaa && echo bbbb\"", "shell \"echo cccc\""]

    @pytest.mark.asyncio
    async def test_failed_batch_aborts_the_rest(self, make_bridge):
        """Test one failing batch stops later batches."""
        bridge, runner = make_bridge(ProcessOutput("", "cp: /a: No such file or directory\n", 1), OK,
                                     command_length_limit=10)

        with pytest.raises(AdbError):
            await bridge.run_shell_batch(["cp /a /b", "cp /c /d"])

        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_kill_server(self, make_bridge):
        """Test the server stop command."""
        bridge, runner = make_bridge(OK)

        await bridge.kill_server()

        assert runner.arguments == ["kill-server"]


class TestDefaults:
    """Test bridge construction."""

    def test_default_config(self):
        """Test a bridge without config uses defaults."""
        bridge = DebugBridge(MagicMock(), AsyncMock())

        assert bridge.config.command_length_limit == 1024
        assert bridge.adb_path is None
