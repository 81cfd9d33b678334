from abc import ABC, abstractmethod
from typing import Mapping

from PIL import Image


class ScreenshotProcessor(ABC):
    """Abstract consumer of captured screenshots."""

    @abstractmethod
    def process(self, image: Image.Image, metadata: Mapping[str, str]) -> None:
        """
        Handle one capture. ``image`` and ``metadata`` are shared with every
        other processor of the same capture: copy before modifying either.
        """

    def finish(self) -> None:
        """Release held resources. Called once at shutdown, even with no captures."""
        return None
