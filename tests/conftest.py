"""
Pytest configuration and fixtures for logshot tests.
"""

import queue
import threading
from typing import List, Optional

import pytest
from unittest.mock import MagicMock

from logshot.device.base import DeviceBase
from logshot.frame import RGBA_8888, RawFrame
from logshot.processors.base import ScreenshotProcessor


def make_frame(width=2, height=2, layout=RGBA_8888, fill=b"\x10\x20\x30\x00"):
    """A frame of identical pixels, ``fill`` being one pixel's bytes."""
    return RawFrame(width, height, fill * (width * height), layout)


class FakeDevice(DeviceBase):
    """
    Device whose log stream is fed by the test.

    ``backlog`` batches are delivered as soon as the shell command starts, the
    way logcat replays lines logged before we connected. Later batches come
    from ``push()``; ``end()`` closes the stream.
    """

    def __init__(self, serial="emulator-5554", frame=None, backlog=None):
        self._serial = serial
        self.frame = frame if frame is not None else make_frame()
        self.backlog: List[List[str]] = backlog or []
        self.batches: "queue.Queue[Optional[List[str]]]" = queue.Queue()
        self.backlog_delivered = threading.Event()
        self.commands: List[List[str]] = []
        self.screenshots = 0
        self.closed = False

    @property
    def serial(self):
        return self._serial

    def execute_shell_command(self, command, receiver):
        self.commands.append(command)
        for batch in self.backlog:
            receiver.process_new_lines(batch)
        self.backlog_delivered.set()

        while not receiver.is_cancelled():
            batch = self.batches.get(timeout=5)
            if batch is None:
                return
            receiver.process_new_lines(batch)

    def get_screenshot(self):
        self.screenshots += 1
        return self.frame

    def push(self, *lines):
        self.batches.put(list(lines))

    def end(self):
        self.batches.put(None)

    def close(self):
        self.closed = True


class RecordingProcessor(ScreenshotProcessor):
    """Processor remembering what it was given, optionally failing on demand."""

    def __init__(self, name="recorder", log=None, fail_process=False, fail_finish=False):
        self.name = name
        self.log = log if log is not None else []
        self.fail_process = fail_process
        self.fail_finish = fail_finish
        self.calls = []
        self.finish_count = 0
        self.processed = threading.Event()

    def process(self, image, metadata):
        self.log.append(("process", self.name))
        self.calls.append((image, metadata))
        self.processed.set()
        if self.fail_process:
            raise RuntimeError(f"{self.name} broke")

    def finish(self):
        self.log.append(("finish", self.name))
        self.finish_count += 1
        if self.fail_finish:
            raise RuntimeError(f"{self.name} could not finish")


@pytest.fixture
def fake_device():
    device = FakeDevice()
    yield device
    # unblock the reader thread if a test left it waiting
    device.end()


@pytest.fixture
def mock_device():
    """Create a mock device that satisfies the DeviceBase contract."""
    mock = MagicMock(spec=DeviceBase)
    mock.serial = "emulator-5554"
    mock.get_screenshot.return_value = make_frame()
    return mock


@pytest.fixture
def recorder():
    return RecordingProcessor()
