"""Exceptions raised inside logshot."""


class LogshotError(Exception):
    """Base class for logshot errors."""


class MalformedFrame(LogshotError, ValueError):
    """A raw framebuffer whose geometry or length cannot be decoded."""


class AdbError(LogshotError):
    """An adb invocation failed or returned output we could not understand."""
