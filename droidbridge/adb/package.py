"""Package management on the device."""

from typing import List, Optional, Sequence

from .bridge import DebugBridge
from .files import DeviceFiles
from ..util.logging import get_logger
from ..util.paths import escape_proc, escape_shell

logger = get_logger(__name__)

# pm prefixes every result line with "package:"
PACKAGE_PREFIX_LENGTH = len("package:")


class PackageManager:
    """Install, remove and inspect packages on the device."""

    def __init__(self, bridge: DebugBridge, default_prefixes: Optional[Sequence[str]] = None):
        self.bridge = bridge
        self.files = DeviceFiles(bridge)
        if default_prefixes is None:
            default_prefixes = bridge.config.default_package_prefixes
        self.default_prefixes = tuple(default_prefixes)

    async def install_app(self, apk_path: str) -> None:
        """Install an APK from the host."""
        logger.info(f"Installing {apk_path}")
        await self.bridge.run(f"install {escape_proc(str(apk_path))} --no-streaming")

    async def uninstall_app(self, package_id: str) -> None:
        logger.info(f"Uninstalling {package_id}")
        await self.bridge.run(f"uninstall {escape_proc(package_id)}")

    async def is_package_installed(self, package_id: str) -> bool:
        """Check if a package is installed."""
        output = await self.bridge.run_shell(f"pm list packages {escape_shell(package_id)}")
        # pm filters by substring, so compare whole ids
        return package_id in self._parse_package_lines(output.standard_output)

    async def list_packages(self) -> List[str]:
        """List the ids of every installed package, in pm's order."""
        output = await self.bridge.run_shell("pm list packages")
        packages = self._parse_package_lines(output.standard_output)
        logger.debug(f"Found {len(packages)} packages")
        return packages

    async def list_non_default_packages(self) -> List[str]:
        """List installed packages that are not part of the system image or vendor apps."""
        return [
            package_id for package_id in await self.list_packages()
            if not package_id.startswith(self.default_prefixes)
        ]

    async def get_package_path(self, package_id: str) -> str:
        """Get the device path of a package's APK."""
        output = await self.bridge.run_shell(f"pm path {escape_shell(package_id)}")
        return (
            output.standard_output[PACKAGE_PREFIX_LENGTH:]
            .replace("\n", "")
            .replace("\r", "")
            .replace("'", "")
        )

    async def download_apk(self, package_id: str, destination: str) -> None:
        """Pull the installed APK of a package to the host."""
        apk_path = await self.get_package_path(package_id)
        logger.debug(f"APK for {package_id} is at {apk_path}")
        await self.files.download_file(apk_path, destination)

    @staticmethod
    def _parse_package_lines(output: str) -> List[str]:
        packages = []
        for line in output.split("\n"):
            line = line.strip()
            if line:
                packages.append(line[PACKAGE_PREFIX_LENGTH:])
        return packages
