"""
logshot - on-demand Android screenshots driven by logcat marker lines.
"""

from .decoder import decode_frame
from .dispatcher import CaptureDispatcher, DispatchResult, DispatchStatus
from .errors import AdbError, LogshotError, MalformedFrame
from .frame import PixelLayout, RawFrame
from .marker import parse_marker
from .monitor import MonitorState, StreamMonitor
from .service import ScreenshotService, ServiceState

__version__ = "0.1.0"

__all__ = [
    "AdbError",
    "CaptureDispatcher",
    "DispatchResult",
    "DispatchStatus",
    "LogshotError",
    "MalformedFrame",
    "MonitorState",
    "PixelLayout",
    "RawFrame",
    "ScreenshotService",
    "ServiceState",
    "StreamMonitor",
    "decode_frame",
    "parse_marker",
]
