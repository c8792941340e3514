"""Command Line Interface for droidbridge."""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .adb import (
    AdbError,
    BridgeNotFoundError,
    DebugBridge,
    DeviceDisconnectedError,
    DeviceFiles,
    DisconnectionType,
    LogcatRecorder,
    PackageManager,
    PlatformToolsLocator,
)
from .config import BridgeConfig, get_config, load_config
from .util import setup_logging

console = Console()

DISCONNECTION_HINTS = {
    DisconnectionType.NO_DEVICE: "No device found. Plug in your device and enable USB debugging.",
    DisconnectionType.MULTIPLE_DEVICES: "Multiple devices connected. Unplug all but one.",
    DisconnectionType.DEVICE_OFFLINE: "Device is offline. Try replugging it.",
    DisconnectionType.UNAUTHORIZED: "Device is unauthorized. Accept the debugging prompt on the device.",
}


class ConsoleReconnectPrompt:
    """Recovery handler that tells the user what to fix and waits before retrying."""

    def __init__(self, delay: float):
        self.delay = delay

    async def __call__(self, disconnection: DisconnectionType) -> None:
        console.print(f"[yellow]{DISCONNECTION_HINTS[disconnection]}[/yellow] Retrying in {self.delay:g}s...")
        await asyncio.sleep(self.delay)


def build_bridge(config: BridgeConfig) -> DebugBridge:
    """Create a bridge wired to the console reconnect prompt."""
    locator = PlatformToolsLocator(config.platform_tools_dir, config.adb_executable_name)
    return DebugBridge(locator, ConsoleReconnectPrompt(config.reconnect_delay), config)


def _execute(coro):
    """Run an async command, turning bridge errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except BridgeNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except DeviceDisconnectedError as e:
        console.print(f"[red]Device unavailable: {e.disconnection_type.value}[/red]")
        sys.exit(1)
    except AdbError as e:
        console.print(f"[red]ADB Error: {e.output.strip()}[/red]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path]):
    """droidbridge - file and package management for one adb device."""
    bridge_config = load_config(config) if config else get_config()
    setup_logging(level="DEBUG" if verbose else bridge_config.log_level, console=Console(stderr=True))

    ctx.ensure_object(dict)
    ctx.obj["bridge"] = build_bridge(bridge_config)


@cli.group()
def files():
    """Device file commands."""
    pass


@files.command("ls")
@click.argument("path")
@click.option("--dirs", is_flag=True, help="List directories instead of files")
@click.option("--names", is_flag=True, help="Print names only instead of full paths")
@click.pass_obj
def files_ls(obj, path: str, dirs: bool, names: bool):
    """List a device directory."""
    async def _ls():
        device_files = DeviceFiles(obj["bridge"])
        if dirs:
            entries = await device_files.list_directory_folders(path, names_only=names)
        else:
            entries = await device_files.list_directory_files(path, names_only=names)

        if not entries:
            console.print(f"[yellow]{path} is empty[/yellow]")
            return

        table = Table(title=f"{'Directories' if dirs else 'Files'} in {path}")
        table.add_column("Name" if names else "Path", style="cyan")
        for entry in entries:
            table.add_row(entry)
        console.print(table)

    _execute(_ls())


@files.command("exists")
@click.argument("path")
@click.pass_obj
def files_exists(obj, path: str):
    """Check whether a device file exists."""
    async def _exists():
        try:
            found = await DeviceFiles(obj["bridge"]).file_exists(path)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="PATH") from e
        return found

    if _execute(_exists()):
        console.print("[green]exists[/green]")
    else:
        console.print("[yellow]missing[/yellow]")
        sys.exit(1)


@files.command("push")
@click.argument("local", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("remote")
@click.pass_obj
def files_push(obj, local: Path, remote: str):
    """Upload a file to the device."""
    _execute(DeviceFiles(obj["bridge"]).upload_file(str(local), remote))
    console.print(f"[green]Uploaded {local} -> {remote}[/green]")


@files.command("pull")
@click.argument("remote")
@click.argument("local", type=click.Path(path_type=Path))
@click.pass_obj
def files_pull(obj, remote: str, local: Path):
    """Download a file from the device."""
    _execute(DeviceFiles(obj["bridge"]).download_file(remote, str(local)))
    console.print(f"[green]Downloaded {remote} -> {local}[/green]")


@files.command("mkdir")
@click.argument("paths", nargs=-1, required=True)
@click.pass_obj
def files_mkdir(obj, paths: List[str]):
    """Create device directories (with parents)."""
    _execute(DeviceFiles(obj["bridge"]).create_directories(list(paths)))


@files.command("rm")
@click.argument("paths", nargs=-1, required=True)
@click.option("--recursive", "-r", is_flag=True, help="Remove directories and their contents")
@click.pass_obj
def files_rm(obj, paths: List[str], recursive: bool):
    """Delete device files."""
    async def _rm():
        device_files = DeviceFiles(obj["bridge"])
        if recursive:
            for path in paths:
                await device_files.remove_directory(path)
        else:
            await device_files.delete_files(list(paths))

    _execute(_rm())


@files.command("mv")
@click.argument("source")
@click.argument("destination")
@click.pass_obj
def files_mv(obj, source: str, destination: str):
    """Move or rename a device file."""
    _execute(DeviceFiles(obj["bridge"]).move(source, destination))


@files.command("cp")
@click.argument("source")
@click.argument("destination")
@click.pass_obj
def files_cp(obj, source: str, destination: str):
    """Copy a device file."""
    _execute(DeviceFiles(obj["bridge"]).copy_file(source, destination))


@files.command("chmod")
@click.argument("permissions")
@click.argument("paths", nargs=-1, required=True)
@click.pass_obj
def files_chmod(obj, permissions: str, paths: List[str]):
    """Change permissions of device files."""
    _execute(DeviceFiles(obj["bridge"]).chmod(list(paths), permissions))


@files.command("unzip")
@click.argument("archive")
@click.argument("output_folder")
@click.pass_obj
def files_unzip(obj, archive: str, output_folder: str):
    """Extract a device archive into a device folder."""
    _execute(DeviceFiles(obj["bridge"]).extract_archive(archive, output_folder))


@cli.group()
def apps():
    """Application management commands."""
    pass


@apps.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include system and vendor packages")
@click.pass_obj
def apps_list(obj, show_all: bool):
    """List installed packages."""
    async def _list():
        manager = PackageManager(obj["bridge"])
        packages = await (manager.list_packages() if show_all else manager.list_non_default_packages())

        table = Table(title=f"Installed Packages ({'All' if show_all else 'Non-default only'})")
        table.add_column("Package", style="cyan")
        for package_id in packages:
            table.add_row(package_id)
        console.print(table)

    _execute(_list())


@apps.command("pull-apk")
@click.argument("package_id")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Destination APK file")
@click.pass_obj
def apps_pull_apk(obj, package_id: str, output: Optional[Path]):
    """Download the installed APK of a package."""
    if not output:
        output = Path.cwd() / f"{package_id}.apk"
    _execute(PackageManager(obj["bridge"]).download_apk(package_id, str(output)))
    console.print(f"[green]Saved {package_id} to {output}[/green]")


@apps.command("install")
@click.argument("apk", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def apps_install(obj, apk: Path):
    """Install an APK."""
    _execute(PackageManager(obj["bridge"]).install_app(str(apk)))
    console.print(f"[green]Installed {apk.name}[/green]")


@apps.command("uninstall")
@click.argument("package_id")
@click.pass_obj
def apps_uninstall(obj, package_id: str):
    """Uninstall a package."""
    _execute(PackageManager(obj["bridge"]).uninstall_app(package_id))
    console.print(f"[green]Uninstalled {package_id}[/green]")


@cli.command("logcat")
@click.argument("log_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--duration", "-d", type=float, help="Stop after this many seconds")
@click.pass_obj
def logcat(obj, log_file: Path, duration: Optional[float]):
    """Save the device log to LOG_FILE until stopped with Ctrl+C."""
    async def _logcat():
        recorder = LogcatRecorder(obj["bridge"])
        recorder.add_stopped_listener(lambda _: console.print(f"[green]Log saved to {log_file}[/green]"))
        await recorder.start_logging(log_file)
        try:
            if duration is None:
                await recorder.wait_stopped()
            else:
                await asyncio.sleep(duration)
        finally:
            recorder.stop_logging()
            await recorder.wait_stopped()

    try:
        _execute(_logcat())
    except KeyboardInterrupt:
        pass


@cli.command("kill-server")
@click.pass_obj
def kill_server(obj):
    """Stop the adb server."""
    _execute(obj["bridge"].kill_server())


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
