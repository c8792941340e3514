"""Shared fixtures for bridge tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from droidbridge.adb import DebugBridge, ProcessOutput
from droidbridge.config import BridgeConfig


class ScriptedRunner:
    """Stands in for the process primitive, replaying canned results in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def __call__(self, executable, arguments):
        self.calls.append((executable, arguments))
        result = self.results.pop(0) if self.results else ProcessOutput("", "", 0)
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def arguments(self):
        return [arguments for _, arguments in self.calls]


class RecordingHandler:
    """Disconnection handler that remembers what it was told."""

    def __init__(self):
        self.notified = []

    async def __call__(self, disconnection):
        self.notified.append(disconnection)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def locator():
    mock_locator = MagicMock()
    mock_locator.get_adb_path = AsyncMock(return_value="/opt/platform-tools/adb")
    return mock_locator


@pytest.fixture
def make_bridge(handler, locator):
    """Build a bridge whose process runner replays the given results."""

    def _make(*results, **config_overrides):
        config_overrides.setdefault("adb_path", "adb")
        runner = ScriptedRunner(*results)
        bridge = DebugBridge(locator, handler, BridgeConfig(**config_overrides), runner=runner)
        return bridge, runner

    return _make


@pytest.fixture
def scripted_runner():
    return ScriptedRunner
