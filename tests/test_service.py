"""
Tests for the screenshot service lifecycle, end to end over a fake device.
"""

import threading

import pytest

from conftest import FakeDevice, RecordingProcessor
from logshot.dispatcher import DispatchStatus
from logshot.monitor import MonitorState
from logshot.service import ScreenshotService, ServiceState

QUIET = 0.2


class TestServicePipeline:
    """Tests running the whole pipeline on the reader thread."""

    def test_backlog_is_ignored_and_latest_request_wins(self, recorder):
        """Backlog is skipped; of a three-line batch only the last is captured."""
        device = FakeDevice(backlog=[["{name=stale}"]])
        service = ScreenshotService(device, recorder, quiet_period=QUIET)

        service.start()
        assert device.backlog_delivered.wait(2)
        device.push("{name=one}", "{name=two}", "{name=three}")
        device.end()
        service.wait(timeout=5)

        assert [dict(meta) for _, meta in recorder.calls] == [{"name": "three"}]
        assert device.screenshots == 1
        service.finish()

    def test_logcat_filter_is_sent(self, fake_device):
        """The service asks for the request tag on the main buffer only."""
        service = ScreenshotService(fake_device, quiet_period=0)
        service.start()
        fake_device.end()
        service.wait(timeout=5)

        assert fake_device.commands == [
            ["logcat", "-v", "raw", "-b", "main", "screenshot_request:D", "*:S"]
        ]
        service.finish()

    def test_results_reach_callback(self, fake_device, recorder):
        """Dispatch results are reported through on_result."""
        results = []
        reported = threading.Event()

        def on_result(result):
            results.append(result)
            reported.set()

        service = ScreenshotService(fake_device, recorder, quiet_period=0, on_result=on_result)
        service.start()
        fake_device.push("{name=a}")
        assert reported.wait(5)
        service.finish()

        assert [r.status for r in results] == [DispatchStatus.DISPATCHED]

    def test_no_dispatch_after_finish(self, fake_device, recorder):
        """After finish, marker lines are ignored and the reader winds down."""
        service = ScreenshotService(fake_device, recorder, quiet_period=0)
        service.start()
        service.finish()

        fake_device.push("{name=late}")
        service.wait(timeout=5)

        assert recorder.calls == []
        assert fake_device.screenshots == 0
        assert service.monitor.is_alive() is False


class TestServiceLifecycle:
    """Tests for the not-started -> running -> finished state machine."""

    def test_states(self, fake_device):
        """The service walks through its states in order."""
        service = ScreenshotService(fake_device, quiet_period=0)
        assert service.state is ServiceState.NOT_STARTED

        service.start()
        assert service.state is ServiceState.RUNNING
        assert service.monitor.state is MonitorState.ACTIVE

        service.finish()
        assert service.state is ServiceState.FINISHED
        assert service.monitor.state is MonitorState.CANCELLED

    def test_cannot_restart(self, fake_device):
        """A finished service is not reusable."""
        service = ScreenshotService(fake_device, quiet_period=0)
        service.start()
        service.finish()
        with pytest.raises(RuntimeError):
            service.start()

    def test_cannot_start_twice(self, fake_device):
        """Starting a running service is an error."""
        service = ScreenshotService(fake_device, quiet_period=0)
        service.start()
        with pytest.raises(RuntimeError):
            service.start()
        service.finish()

    def test_finish_without_start(self, fake_device, recorder):
        """Finishing an unstarted service still shuts processors down."""
        service = ScreenshotService(fake_device, recorder)
        service.finish()
        assert recorder.finish_count == 1
        assert service.state is ServiceState.FINISHED

    def test_finish_calls_every_hook_once(self, fake_device):
        """Every processor is finished exactly once even if one fails."""
        log = []
        processors = [
            RecordingProcessor("a", log=log, fail_finish=True),
            RecordingProcessor("b", log=log),
            RecordingProcessor("c", log=log, fail_finish=True),
        ]
        service = ScreenshotService(fake_device, *processors, quiet_period=0)
        service.start()

        service.finish()
        service.finish()

        assert [p.finish_count for p in processors] == [1, 1, 1]
        assert log == [("finish", "a"), ("finish", "b"), ("finish", "c")]

    def test_context_manager(self, fake_device, recorder):
        """Using the service as a context manager starts and finishes it."""
        with ScreenshotService(fake_device, recorder, quiet_period=0) as service:
            assert service.state is ServiceState.RUNNING
        assert service.state is ServiceState.FINISHED
        assert recorder.finish_count == 1

    def test_processors_are_fixed(self, fake_device, recorder):
        """The processor set is an immutable tuple."""
        service = ScreenshotService(fake_device, recorder)
        assert service.processors == (recorder,)
        assert service.dispatcher.processors == (recorder,)


class BlockingProcessor(RecordingProcessor):
    """Recording processor that holds on to each image until released."""

    def __init__(self, name, log):
        super().__init__(name, log=log)
        self.release = threading.Event()

    def process(self, image, metadata):
        super().process(image, metadata)
        self.release.wait(5)


class TestFinishDuringCapture:
    """Tests for finish() racing a capture already handed to processors."""

    def test_finish_waits_for_capture_in_progress(self, fake_device):
        """Shutdown hooks run only after every processor saw the last capture."""
        log = []
        slow = BlockingProcessor("slow", log)
        after = RecordingProcessor("after", log=log)
        service = ScreenshotService(fake_device, slow, after, quiet_period=0)
        service.start()

        fake_device.push("{name=last}")
        assert slow.processed.wait(5)
        finisher = threading.Thread(target=service.finish)
        finisher.start()
        finisher.join(timeout=0.3)
        assert finisher.is_alive()

        slow.release.set()
        finisher.join(timeout=5)

        assert not finisher.is_alive()
        assert log == [
            ("process", "slow"),
            ("process", "after"),
            ("finish", "slow"),
            ("finish", "after"),
        ]

    def test_finish_gives_up_after_drain_timeout(self, fake_device):
        """A capture that never completes cannot hold shutdown forever."""
        log = []
        slow = BlockingProcessor("slow", log)
        service = ScreenshotService(fake_device, slow, quiet_period=0)
        service.DRAIN_TIMEOUT_SEC = 0.1
        service.start()

        fake_device.push("{name=stuck}")
        assert slow.processed.wait(5)
        service.finish()
        slow.release.set()

        assert slow.finish_count == 1
        assert service.state is ServiceState.FINISHED
