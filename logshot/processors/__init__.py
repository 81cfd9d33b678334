"""
Processors: pluggable consumers of captured screenshots.
"""

from .base import ScreenshotProcessor
from .gif import AnimatedGifCreator
from .saver import ImageSaver
from .scaler import ImageScaler
from .uploader import HttpUploader


__all__ = ["ScreenshotProcessor", "AnimatedGifCreator", "ImageSaver", "ImageScaler", "HttpUploader"]
