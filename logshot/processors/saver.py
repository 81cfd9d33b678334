import logging
import os
import re
import time
from typing import List, Mapping

from PIL import Image

from .base import ScreenshotProcessor

logger = logging.getLogger("ImageSaver")

_UNSAFE = re.compile(r"[^\w.-]+")


def filename_stem(metadata: Mapping[str, str]) -> str:
    """File stem for a capture: the marker's ``name`` when given, else a timestamp."""
    name = _UNSAFE.sub("_", metadata.get("name", "")).strip("._")
    return name or f"{time.time():.5f}"


class ImageSaver(ScreenshotProcessor):
    """
    Save every capture into a directory.

    Files are named after the marker's ``name`` key. An existing file is
    never overwritten: a numeric suffix is added instead.
    """

    _JPEG_QUALITY: int = 90

    def __init__(self, directory: str = "screenshots", image_format: str = "png") -> None:
        self.directory = os.path.abspath(os.path.expanduser(directory))
        os.makedirs(self.directory, exist_ok=True)
        self.image_format = image_format.lower()
        self.saved: List[str] = []

    def _path_for(self, stem: str) -> str:
        path = os.path.join(self.directory, f"{stem}.{self.image_format}")
        counter = 1
        while os.path.exists(path):
            path = os.path.join(self.directory, f"{stem}-{counter}.{self.image_format}")
            counter += 1
        return path

    def process(self, image: Image.Image, metadata: Mapping[str, str]) -> None:
        path = self._path_for(filename_stem(metadata))
        if self.image_format in ("jpg", "jpeg"):
            # JPEG has no alpha channel
            image.convert("RGB").save(path, "JPEG", quality=self._JPEG_QUALITY, optimize=True)
        else:
            image.save(path)
        self.saved.append(path)
        logger.info(f"Saved {path}")
