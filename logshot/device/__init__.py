import logging
import subprocess
from typing import List, Optional, Tuple

from ..errors import AdbError
from .adb import AdbDevice
from .base import DeviceBase, ShellOutputReceiver

logger = logging.getLogger("DeviceFactory")

__all__ = ["AdbDevice", "DeviceBase", "ShellOutputReceiver", "get_device", "list_devices"]


def list_devices(adb_path: str = "adb") -> List[Tuple[str, str]]:
    """Return ``(serial, state)`` pairs reported by ``adb devices``."""
    try:
        result = subprocess.run(
            [adb_path, "devices"], capture_output=True, text=True, timeout=10
        )
    except subprocess.TimeoutExpired as e:
        raise AdbError("'adb devices' timed out") from e
    except OSError as e:
        raise AdbError(f"Could not run {adb_path}: {e}") from e

    if result.returncode != 0:
        raise AdbError(f"'adb devices' failed: {result.stderr.strip() or 'no error message'}")

    devices = []
    for line in result.stdout.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2:
            devices.append((parts[0], parts[1]))
    return devices


def get_device(serial: Optional[str] = None, adb_path: str = "adb") -> DeviceBase:
    """
    Get the device to watch.

    With a serial, that device must be attached and online. Without one,
    exactly one online device must be attached.
    """
    devices = list_devices(adb_path)
    online = [s for s, state in devices if state == "device"]

    if serial:
        if serial not in online:
            known = ", ".join(f"{s} ({state})" for s, state in devices) or "none"
            raise AdbError(f"Device {serial} is not online. Attached: {known}")
        return AdbDevice(serial, adb_path=adb_path)

    if not online:
        raise AdbError("No online device found")
    if len(online) > 1:
        raise AdbError(f"More than one device attached, pick one of: {', '.join(online)}")

    logger.info(f"Using device {online[0]}")
    return AdbDevice(online[0], adb_path=adb_path)
