"""
Logcat monitoring.

The monitor runs one long ``logcat`` command on a background thread and turns
each batch of marker lines into at most one trigger: only the most recent
request in a batch still matters, whatever the earlier ones asked for is gone.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, List, Optional

from .device.base import DeviceBase, ShellOutputReceiver

logger = logging.getLogger("StreamMonitor")


class MonitorState(enum.Enum):
    IDLE = "idle"
    ACTIVATING = "activating"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class StreamMonitor(ShellOutputReceiver):
    """
    Watch a device log tag and call ``on_trigger`` with the latest marker line.

    Triggers only fire while ACTIVE. The state only moves forward:
    IDLE -> ACTIVATING (reader launched) -> ACTIVE (quiet period over)
    -> CANCELLED, and ``stop()`` may jump to CANCELLED from anywhere.
    """

    DEFAULT_TAG: str = "screenshot_request"
    # Only the 'main' buffer: 'system' can be extremely slow to cat on some
    # devices and never carries our tag.
    DEFAULT_BUFFER: str = "main"
    DEFAULT_PRIORITY: str = "D"

    def __init__(
        self,
        device: DeviceBase,
        tag: str = DEFAULT_TAG,
        log_buffer: str = DEFAULT_BUFFER,
        min_priority: str = DEFAULT_PRIORITY,
    ) -> None:
        self.device = device
        self.tag = tag
        self.log_buffer = log_buffer
        self.min_priority = min_priority

        self._state = MonitorState.IDLE
        self._state_lock = threading.Lock()
        # held by the reader for the whole of one trigger
        self._dispatch_lock = threading.Lock()
        self._on_trigger: Optional[Callable[[str], object]] = None
        self._thread: Optional[threading.Thread] = None

    # -------------------------------- state
    @property
    def state(self) -> MonitorState:
        with self._state_lock:
            return self._state

    def _advance(self, expected: MonitorState, new: MonitorState) -> bool:
        with self._state_lock:
            if self._state is not expected:
                return False
            self._state = new
            return True

    def activate(self) -> bool:
        """Start acting on marker lines. Returns False if not currently activating."""
        activated = self._advance(MonitorState.ACTIVATING, MonitorState.ACTIVE)
        if activated:
            logger.info(f"Accepting screenshot requests from {self.device.serial}")
        return activated

    def stop(self) -> None:
        """Stop triggering. The reader ends at the next batch it receives."""
        with self._state_lock:
            if self._state is MonitorState.CANCELLED:
                return
            self._state = MonitorState.CANCELLED
        logger.debug(f"Monitor for {self.device.serial} cancelled")

    def is_cancelled(self) -> bool:
        return self.state is MonitorState.CANCELLED

    def wait_idle(self, timeout: float) -> bool:
        """
        Wait for a trigger already running on the reader to return.

        After ``stop()``, a True result means no trigger is running and none
        will start. Returns False on timeout, and at once when called from
        the reader thread itself.
        """
        if threading.current_thread() is self._thread:
            return False
        if not self._dispatch_lock.acquire(timeout=timeout):
            return False
        self._dispatch_lock.release()
        return True

    # -------------------------------- reader thread
    @property
    def command(self) -> List[str]:
        return [
            "logcat",
            "-v",
            "raw",
            "-b",
            self.log_buffer,
            f"{self.tag}:{self.min_priority}",
            "*:S",
        ]

    def start(self, on_trigger: Callable[[str], object]) -> None:
        """Launch the background logcat reader."""
        if not self._advance(MonitorState.IDLE, MonitorState.ACTIVATING):
            raise RuntimeError(f"Monitor cannot start from state {self.state.value}")

        self._on_trigger = on_trigger
        self._thread = threading.Thread(
            target=self._run,
            name=f"{type(self).__name__} logcat for {self.device.serial}",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            self.device.execute_shell_command(self.command, self)
        except Exception as e:
            # Connection loss or a failing logcat just ends monitoring
            logger.debug(f"logcat on {self.device.serial} ended: {e}")
        else:
            logger.debug(f"logcat on {self.device.serial} ended")

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    # -------------------------------- batches
    def process_new_lines(self, lines: List[str]) -> None:
        if not lines:
            return

        with self._dispatch_lock:
            # checked under the dispatch lock so stop() + wait_idle() leave no gap
            if self.state is not MonitorState.ACTIVE:
                return

            most_recent = lines[-1]
            if len(lines) > 1:
                logger.debug(f"Dropping {len(lines) - 1} superseded request(s)")

            try:
                self._on_trigger(most_recent)
            except Exception:
                logger.exception(f"Screenshot request failed: {most_recent!r}")
