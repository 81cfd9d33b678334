from typing import Mapping

from PIL import Image

from .base import ScreenshotProcessor


class ImageScaler(ScreenshotProcessor):
    """Resize captures by ``scale`` before passing them on to ``delegate``."""

    def __init__(self, delegate: ScreenshotProcessor, scale: float) -> None:
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.delegate = delegate
        self.scale = scale

    def process(self, image: Image.Image, metadata: Mapping[str, str]) -> None:
        if self.scale != 1:
            size = (
                max(1, round(image.width * self.scale)),
                max(1, round(image.height * self.scale)),
            )
            image = image.resize(size, Image.LANCZOS)
        self.delegate.process(image, metadata)

    def finish(self) -> None:
        self.delegate.finish()
