"""Error types and disconnection classification for adb commands."""

from enum import Enum
from typing import Optional


class AdbError(Exception):
    """adb exited with a non-zero code that is not a known disconnection.

    ``output`` holds the combined standard and error output of the command.
    """

    def __init__(self, output: str):
        super().__init__(output)
        self.output = output


class BridgeNotFoundError(Exception):
    """The adb executable is not on PATH and could not be located."""
    pass


class DisconnectionType(Enum):
    """Recoverable connectivity failures reported by adb."""

    NO_DEVICE = "no_device"
    MULTIPLE_DEVICES = "multiple_devices"
    DEVICE_OFFLINE = "device_offline"
    UNAUTHORIZED = "unauthorized"


class DeviceDisconnectedError(Exception):
    """A command kept failing because the device was not reachable."""

    def __init__(self, disconnection_type: DisconnectionType, output: str = ""):
        super().__init__(f"Device unavailable ({disconnection_type.value}): {output.strip()}")
        self.disconnection_type = disconnection_type
        self.output = output


def classify_disconnection(standard_output: str, error_output: str) -> Optional[DisconnectionType]:
    """Map the output of a failed adb command to a disconnection type.

    Checks are case-insensitive and applied in order, so output mentioning
    both a missing and an offline device is reported as NO_DEVICE.
    Returns None when the failure is not connectivity related.
    """
    all_output = (standard_output + error_output).lower()
    error_output = error_output.lower()

    if "no device" in all_output:
        return DisconnectionType.NO_DEVICE
    if "device offline" in all_output:
        return DisconnectionType.DEVICE_OFFLINE
    if "multiple devices" in all_output or "more than one device" in error_output:
        return DisconnectionType.MULTIPLE_DEVICES
    if "unauthorized" in all_output:
        return DisconnectionType.UNAUTHORIZED
    return None
