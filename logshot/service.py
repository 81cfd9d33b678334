"""
On-demand screenshot service.

Wires a StreamMonitor to a CaptureDispatcher and owns their lifecycle::

    service = ScreenshotService(device, ImageSaver("shots"))
    service.start()
    ...
    service.finish()

An instance runs once: after ``finish()`` build a new one.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, Optional

from .device.base import DeviceBase
from .dispatcher import CaptureDispatcher, DispatchResult
from .monitor import StreamMonitor
from .processors.base import ScreenshotProcessor

logger = logging.getLogger("ScreenshotService")


class ServiceState(enum.Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    FINISHED = "finished"


class ScreenshotService:
    # Time for logcat to flush lines logged before we started listening
    QUIET_PERIOD_SEC: float = 0.5
    # Longest finish() waits for a capture already being handed out
    DRAIN_TIMEOUT_SEC: float = 30.0

    def __init__(
        self,
        device: DeviceBase,
        *processors: ScreenshotProcessor,
        quiet_period: float = QUIET_PERIOD_SEC,
        tag: str = StreamMonitor.DEFAULT_TAG,
        log_buffer: str = StreamMonitor.DEFAULT_BUFFER,
        min_priority: str = StreamMonitor.DEFAULT_PRIORITY,
        on_result: Optional[Callable[[DispatchResult], None]] = None,
    ) -> None:
        self.device = device
        self.processors = tuple(processors)
        self.quiet_period = quiet_period

        self.dispatcher = CaptureDispatcher(device, self.processors, on_result=on_result)
        self.monitor = StreamMonitor(
            device, tag=tag, log_buffer=log_buffer, min_priority=min_priority
        )

        self._state = ServiceState.NOT_STARTED
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ServiceState:
        return self._state

    def start(self) -> None:
        """Start receiving and acting on screenshot requests from the device."""
        with self._state_lock:
            if self._state is not ServiceState.NOT_STARTED:
                raise RuntimeError(
                    f"{type(self).__name__} cannot be started when {self._state.value}"
                )
            self._state = ServiceState.RUNNING

        self.monitor.start(self.dispatcher.on_trigger)

        # ignore old output that logcat feeds us
        time.sleep(self.quiet_period)
        if self.monitor.activate():
            logger.info(
                f"Watching {self.device.serial} for '{self.monitor.tag}' with "
                f"{len(self.processors)} processor(s)"
            )

    def finish(self) -> None:
        """
        Stop acting on screenshot requests and shut down every processor.

        Processors are finished in registration order; a failing one is logged
        and the rest still run. A capture already being handed out is allowed
        to complete first, for up to ``DRAIN_TIMEOUT_SEC``. Calling this again
        does nothing.
        """
        with self._state_lock:
            if self._state is ServiceState.FINISHED:
                logger.debug(f"{type(self).__name__} already finished")
                return
            self._state = ServiceState.FINISHED

        self.monitor.stop()
        if not self.monitor.wait_idle(self.DRAIN_TIMEOUT_SEC):
            logger.warning("A capture was still being processed when processors were finished")

        for processor in self.processors:
            try:
                processor.finish()
            except Exception:
                logger.exception(f"{type(processor).__name__} failed to finish")

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block while the device log is still being read."""
        self.monitor.join(timeout)

    def __enter__(self) -> "ScreenshotService":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()
