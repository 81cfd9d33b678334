from abc import ABC, abstractmethod
from typing import List, Optional

from ..frame import RawFrame


class ShellOutputReceiver(ABC):
    """Abstract consumer of a long-running shell command's output."""

    @abstractmethod
    def process_new_lines(self, lines: List[str]) -> None:
        """
        Handle one batch of complete output lines.
        A batch holds every line that arrived in a single read, in order.
        """

    @abstractmethod
    def is_cancelled(self) -> bool:
        """Return True once the command should be abandoned."""


class DeviceBase(ABC):
    """Abstract interface for the device we watch and capture."""

    @property
    @abstractmethod
    def serial(self) -> str:
        """Identifier of the device, used in thread names and log messages."""

    @abstractmethod
    def execute_shell_command(self, command: List[str], receiver: ShellOutputReceiver) -> None:
        """
        Run a shell command on the device, feeding its output to ``receiver``
        in batches of lines. Blocks until the command ends or the receiver is
        cancelled. Transport failures are raised.
        """

    @abstractmethod
    def get_screenshot(self) -> Optional[RawFrame]:
        """Fetch the current framebuffer; None when the device returned nothing."""

    def close(self) -> None:
        """Release transport resources. Optional."""
        return None
