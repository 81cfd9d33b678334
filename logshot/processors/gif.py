import logging
import os
from typing import List, Mapping

from PIL import Image

from .base import ScreenshotProcessor

logger = logging.getLogger("AnimatedGifCreator")


class AnimatedGifCreator(ScreenshotProcessor):
    """
    Collect captures and write them out as one animated GIF on ``finish()``.

    Frames are copied on arrival since the image is shared with other
    processors. Frames whose size differs from the first are resized to match.
    """

    def __init__(self, path: str = "screenshots.gif", duration_ms: int = 500) -> None:
        self.path = os.path.abspath(os.path.expanduser(path))
        self.duration_ms = duration_ms
        self._frames: List[Image.Image] = []

    def process(self, image: Image.Image, metadata: Mapping[str, str]) -> None:
        frame = image.convert("RGB")
        if self._frames and frame.size != self._frames[0].size:
            frame = frame.resize(self._frames[0].size, Image.LANCZOS)
        self._frames.append(frame)

    def finish(self) -> None:
        if not self._frames:
            logger.info("No screenshots captured, no GIF written")
            return

        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        first, *rest = self._frames
        first.save(
            self.path,
            "GIF",
            save_all=True,
            append_images=rest,
            duration=self.duration_ms,
            loop=0,
        )
        logger.info(f"Wrote {len(self._frames)} frame(s) to {self.path}")

        for frame in self._frames:
            frame.close()
        self._frames.clear()
