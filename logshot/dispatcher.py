"""
Capture dispatch: screenshot, decode, parse and fan out to processors.

Nothing here raises to the caller. Every outcome is reported as a
``DispatchResult`` instead, so a broken device or processor degrades to
"no screenshot" while tests and callers can still see what happened.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from .decoder import decode_frame
from .device.base import DeviceBase
from .marker import parse_marker
from .processors.base import ScreenshotProcessor

logger = logging.getLogger("CaptureDispatcher")


class DispatchStatus(enum.Enum):
    DISPATCHED = "dispatched"  # every processor succeeded
    PARTIAL = "partial"  # at least one processor raised
    CAPTURE_FAILED = "capture_failed"
    NO_FRAME = "no_frame"
    DECODE_FAILED = "decode_failed"


@dataclass
class DispatchResult:
    line: str
    status: DispatchStatus
    metadata: Mapping[str, str] = field(default_factory=dict)
    size: Optional[Tuple[int, int]] = None
    error: Optional[BaseException] = None
    processor_errors: List[Tuple[ScreenshotProcessor, Exception]] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.status in (DispatchStatus.DISPATCHED, DispatchStatus.PARTIAL)


class CaptureDispatcher:
    """Take one screenshot per trigger and hand it to every processor in order."""

    def __init__(
        self,
        device: DeviceBase,
        processors: Iterable[ScreenshotProcessor] = (),
        on_result: Optional[Callable[[DispatchResult], None]] = None,
    ) -> None:
        self.device = device
        self.processors: Sequence[ScreenshotProcessor] = tuple(processors)
        self._on_result = on_result

    def on_trigger(self, line: str) -> DispatchResult:
        result = self._dispatch(line)
        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception:
                logger.exception("Result callback failed")
        return result

    def _dispatch(self, line: str) -> DispatchResult:
        try:
            frame = self.device.get_screenshot()
        except Exception as e:
            logger.warning(f"Screenshot from {self.device.serial} failed: {e}")
            return DispatchResult(line, DispatchStatus.CAPTURE_FAILED, error=e)

        if frame is None:
            logger.warning(f"Device {self.device.serial} returned no screenshot")
            return DispatchResult(line, DispatchStatus.NO_FRAME)

        metadata = MappingProxyType(parse_marker(line))

        try:
            image = decode_frame(frame)
        except Exception as e:
            logger.warning(f"Could not decode screenshot for {line!r}: {e}")
            return DispatchResult(line, DispatchStatus.DECODE_FAILED, metadata=metadata, error=e)

        errors = []
        for processor in self.processors:
            try:
                processor.process(image, metadata)
            except Exception as e:
                logger.exception(f"{type(processor).__name__} failed on {dict(metadata)}")
                errors.append((processor, e))

        status = DispatchStatus.PARTIAL if errors else DispatchStatus.DISPATCHED
        logger.info(
            f"Captured {image.width}x{image.height} for {dict(metadata)} "
            f"-> {len(self.processors) - len(errors)}/{len(self.processors)} processor(s)"
        )
        return DispatchResult(
            line, status, metadata=metadata, size=image.size, processor_errors=errors
        )
