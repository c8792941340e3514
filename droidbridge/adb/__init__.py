"""ADB module initialization."""

from .batch import COMMAND_SEPARATOR, DEFAULT_COMMAND_LENGTH_LIMIT, batch_commands
from .bridge import DebugBridge, DisconnectionHandler
from .errors import (
    AdbError,
    BridgeNotFoundError,
    DeviceDisconnectedError,
    DisconnectionType,
    classify_disconnection,
)
from .files import DeviceFiles
from .listing import listing_text, parse_entries
from .locator import ExecutableLocator, PlatformToolsLocator
from .logcat import LogcatRecorder
from .package import PackageManager
from .process import ProcessOutput, invoke_and_capture, spawn_streaming

__all__ = [
    # batch
    "COMMAND_SEPARATOR",
    "DEFAULT_COMMAND_LENGTH_LIMIT",
    "batch_commands",
    # bridge
    "DebugBridge",
    "DisconnectionHandler",
    # errors
    "AdbError",
    "BridgeNotFoundError",
    "DeviceDisconnectedError",
    "DisconnectionType",
    "classify_disconnection",
    # files
    "DeviceFiles",
    # listing
    "listing_text",
    "parse_entries",
    # locator
    "ExecutableLocator",
    "PlatformToolsLocator",
    # logcat
    "LogcatRecorder",
    # package
    "PackageManager",
    # process
    "ProcessOutput",
    "invoke_and_capture",
    "spawn_streaming",
]
