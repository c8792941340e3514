"""Device filesystem operations."""

from typing import List, Sequence, Tuple

from .bridge import DebugBridge
from .listing import EMPTY_LISTING_EXIT_CODE, listing_text, parse_entries
from ..util.logging import get_logger
from ..util.paths import escape_proc, escape_shell, normalize_slashes, remote_split

logger = get_logger(__name__)


def _remote(path: str) -> str:
    """Normalize and shell-escape a device path."""
    return escape_shell(normalize_slashes(path))


class DeviceFiles:
    """File transfer and file management on the device.

    Plural methods (``copy_files``, ``delete_files`` and so on) send their
    commands in batches. They are much faster for many files, but one failure
    fails the whole batch and the error does not say which file caused it.
    """

    def __init__(self, bridge: DebugBridge):
        self.bridge = bridge

    async def upload_file(self, local_path: str, remote_path: str) -> None:
        """Push a host file to the device."""
        await self.bridge.run(f"push {escape_proc(str(local_path))} {escape_proc(normalize_slashes(remote_path))}")

    async def download_file(self, remote_path: str, local_path: str) -> None:
        """Pull a device file to the host."""
        await self.bridge.run(f"pull {escape_proc(normalize_slashes(remote_path))} {escape_proc(str(local_path))}")

    async def create_directory(self, path: str) -> None:
        await self.bridge.run_shell(f"mkdir -p {_remote(path)}")

    async def create_directories(self, paths: Sequence[str]) -> None:
        await self.bridge.run_shell_batch([f"mkdir -p {_remote(path)}" for path in paths])

    async def move(self, source: str, destination: str) -> None:
        await self.bridge.run_shell(f"mv {_remote(source)} {_remote(destination)}")

    async def delete_file(self, path: str) -> None:
        await self.bridge.run_shell(f"rm -f {_remote(path)}")

    async def delete_files(self, paths: Sequence[str]) -> None:
        await self.bridge.run_shell_batch([f"rm -f {_remote(path)}" for path in paths])

    async def remove_directory(self, path: str) -> None:
        await self.bridge.run_shell(f"rm -rf {_remote(path)}")

    async def copy_file(self, source: str, destination: str) -> None:
        await self.bridge.run_shell(f"cp {_remote(source)} {_remote(destination)}")

    async def copy_files(self, pairs: Sequence[Tuple[str, str]]) -> None:
        """Copy many files; each pair is (source, destination)."""
        await self.bridge.run_shell_batch(
            [f"cp {_remote(source)} {_remote(destination)}" for source, destination in pairs]
        )

    async def chmod(self, paths: Sequence[str], permissions: str) -> None:
        """Apply ``permissions`` (e.g. ``+x`` or ``755``) to every path."""
        commands = []
        for path in paths:
            logger.debug(f"chmod {permissions} {path}")
            commands.append(f"chmod {escape_shell(permissions)} {_remote(path)}")

        await self.bridge.run_shell_batch(commands)

    async def extract_archive(self, path: str, output_folder: str) -> None:
        """Unzip a device archive into ``output_folder``, overwriting existing files."""
        await self.create_directory(output_folder)
        await self.bridge.run_shell(f"unzip {_remote(path)} -o -d {_remote(output_folder)}")

    async def _list(self, path: str, names_only: bool, directories: bool) -> List[str]:
        output = await self.bridge.run_shell(f"ls -p {_remote(path)}", EMPTY_LISTING_EXIT_CODE)
        return parse_entries(listing_text(output), path, names_only, directories)

    async def list_directory_files(self, path: str, names_only: bool = False) -> List[str]:
        """List the files (not subdirectories) directly inside ``path``."""
        return await self._list(path, names_only, directories=False)

    async def list_directory_folders(self, path: str, names_only: bool = False) -> List[str]:
        """List the subdirectories directly inside ``path``."""
        return await self._list(path, names_only, directories=True)

    async def file_exists(self, path: str) -> bool:
        """Check whether a file exists on the device.

        Raises:
            ValueError: If ``path`` has no directory component
        """
        directory, name = remote_split(path)
        if not directory:
            raise ValueError(f"Cannot check existence of {path!r}: the path has no directory")

        return name in await self.list_directory_files(directory, names_only=True)
