"""
droidbridge - asyncio wrapper around the adb command line tool.

Provides a single-device abstraction with:
- Disconnection-aware command execution with a recovery hook
- Batched shell commands under a command length limit
- Device filesystem and package operations
- Live logcat streaming to a file
"""

__version__ = "0.1.0"
__author__ = "droidbridge Contributors"
