"""
ADB-backed device transport.

Every operation shells out to the ``adb`` binary, one subprocess per call,
so nothing here holds a connection open between captures.
"""

import codecs
import logging
import struct
import subprocess
import threading
from typing import List, Optional, Set

from ..errors import AdbError
from ..frame import BGRA_8888, RGB_565, RGB_888, RGBA_8888, RGBX_8888, RawFrame
from .base import DeviceBase, ShellOutputReceiver

logger = logging.getLogger("AdbDevice")

# android.graphics.PixelFormat values reported by screencap
SCREENCAP_FORMATS = {
    1: RGBA_8888,
    2: RGBX_8888,
    3: RGB_888,
    4: RGB_565,
    5: BGRA_8888,
}


def parse_screencap(data: bytes) -> Optional[RawFrame]:
    """
    Parse ``screencap`` output into a RawFrame.

    The output starts with width, height and pixel format as little-endian
    u32s. Android 9 and later add a fourth word (colour space) before the
    pixels; it is detected from the payload size.
    """
    if not data:
        return None
    if len(data) < 12:
        raise AdbError(f"screencap output too short for a header ({len(data)} bytes)")

    width, height, pixel_format = struct.unpack_from("<III", data, 0)
    layout = SCREENCAP_FORMATS.get(pixel_format)
    if layout is None:
        raise AdbError(f"Unknown screencap pixel format {pixel_format}")

    size = width * height * (layout.bits_per_pixel >> 3)
    header = 16 if len(data) >= 16 + size else 12
    if len(data) < header + size:
        raise AdbError(
            f"screencap output truncated: {len(data) - header} pixel bytes for "
            f"{width}x{height} (need {size})"
        )
    return RawFrame(width, height, data[header : header + size], layout)


class AdbDevice(DeviceBase):
    """A single device reached through ``adb -s <serial>``."""

    _READ_SIZE: int = 16384
    _SCREENCAP_TIMEOUT: float = 15.0
    _TERMINATE_TIMEOUT: float = 5.0

    def __init__(self, serial: str, adb_path: str = "adb") -> None:
        self._serial = serial
        self._adb_path = adb_path
        self._processes: Set[subprocess.Popen] = set()
        self._lock = threading.Lock()

    @property
    def serial(self) -> str:
        return self._serial

    def _adb(self, *args: str) -> List[str]:
        return [self._adb_path, "-s", self._serial, *args]

    def execute_shell_command(self, command: List[str], receiver: ShellOutputReceiver) -> None:
        cmd = self._adb("shell", *command)
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            # stderr is not read while streaming, so a pipe there could fill and stall adb
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL)
        except OSError as e:
            raise AdbError(f"Could not run {self._adb_path}: {e}") from e

        with self._lock:
            self._processes.add(proc)

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        cancelled = False
        eof = False
        try:
            while True:
                chunk = proc.stdout.read1(self._READ_SIZE)
                if not chunk:
                    eof = True
                    break
                lines = (pending + decoder.decode(chunk)).split("\n")
                pending = lines.pop()
                lines = [line[:-1] if line.endswith("\r") else line for line in lines]
                if lines:
                    receiver.process_new_lines(lines)
                if receiver.is_cancelled():
                    cancelled = True
                    break

            pending += decoder.decode(b"", final=True)
            if pending and not cancelled:
                receiver.process_new_lines([pending.rstrip("\r")])
        finally:
            self._reap(proc, terminate=not eof)

        if cancelled:
            logger.debug(f"Shell command on {self._serial} cancelled")
        elif proc.returncode != 0:
            raise AdbError(f"'{' '.join(command)}' on {self._serial} exited with {proc.returncode}")

    def _reap(self, proc: subprocess.Popen, terminate: bool) -> None:
        """Wait for (or stop) a streaming process."""
        with self._lock:
            self._processes.discard(proc)
        if terminate and proc.poll() is None:
            proc.terminate()
        try:
            proc.communicate(timeout=self._TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()

    def get_screenshot(self) -> Optional[RawFrame]:
        cmd = self._adb("exec-out", "screencap")
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self._SCREENCAP_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            raise AdbError(f"screencap on {self._serial} timed out") from e
        except OSError as e:
            raise AdbError(f"Could not run {self._adb_path}: {e}") from e

        if result.returncode != 0:
            err = result.stderr.decode("utf-8", errors="replace").strip()
            raise AdbError(f"screencap on {self._serial} failed: {err or 'no error message'}")
        return parse_screencap(result.stdout)

    def close(self) -> None:
        """Terminate any shell command still streaming."""
        with self._lock:
            running = list(self._processes)
        for proc in running:
            if proc.poll() is None:
                proc.terminate()

    def __repr__(self) -> str:
        return f"AdbDevice({self._serial!r})"
