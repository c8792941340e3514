"""Fallback lookup of the adb executable when it is not on PATH."""

import os
from pathlib import Path
from typing import Protocol

from .errors import BridgeNotFoundError
from ..util.logging import get_logger

logger = get_logger(__name__)


class ExecutableLocator(Protocol):
    """Anything that can produce a usable adb path on demand."""

    async def get_adb_path(self) -> str:
        ...


class PlatformToolsLocator:
    """Finds adb inside an unpacked Android platform-tools directory."""

    def __init__(self, platform_tools_dir: Path, executable_name: str = "adb"):
        self.platform_tools_dir = platform_tools_dir
        self.executable_name = executable_name

    async def get_adb_path(self) -> str:
        candidate = self.platform_tools_dir / self.executable_name
        if not candidate.is_file():
            raise BridgeNotFoundError(
                f"adb was not found on PATH or in {self.platform_tools_dir}. "
                "Install the Android platform tools or set adb_path in the configuration."
            )

        if not os.access(candidate, os.X_OK):
            logger.debug(f"Marking {candidate} as executable")
            candidate.chmod(candidate.stat().st_mode | 0o111)

        logger.info(f"Using adb from {candidate}")
        return str(candidate)
