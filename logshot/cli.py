"""
logshot - Entrypoint

- Loads settings
- Connects to the device
- Builds processors and runs the screenshot service until Ctrl-C
"""
import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import Settings, load_settings
from .device import get_device
from .errors import AdbError
from .processors import AnimatedGifCreator, HttpUploader, ImageSaver, ImageScaler
from .processors.base import ScreenshotProcessor
from .service import ScreenshotService

logger = logging.getLogger("logshot")


def build_processors(settings: Settings) -> List[ScreenshotProcessor]:
    processors: List[ScreenshotProcessor] = []
    if settings.output_dir:
        processors.append(ImageSaver(settings.output_dir, image_format=settings.image_format))
    if settings.gif_path:
        processors.append(
            AnimatedGifCreator(settings.gif_path, duration_ms=settings.gif_duration_ms)
        )
    if settings.upload_url:
        processors.append(HttpUploader(settings.upload_url, timeout=settings.upload_timeout))

    if settings.scale != 1:
        processors = [ImageScaler(p, settings.scale) for p in processors]
    return processors


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Take device screenshots whenever the app logs a screenshot request"
    )
    parser.add_argument("--config", "-c", help="Path to a YAML settings file")
    parser.add_argument("--serial", "-s", help="Device serial (default: the only attached device)")
    parser.add_argument("--adb", dest="adb_path", help="Path to the adb binary")
    parser.add_argument("--output-dir", "-o", help="Directory to save screenshots in")
    parser.add_argument("--format", dest="image_format", help="Image format for saved files")
    parser.add_argument("--scale", type=float, help="Scale factor applied before processing")
    parser.add_argument("--gif", dest="gif_path", help="Also write every capture into this GIF")
    parser.add_argument("--upload-url", help="Also POST every capture to this URL")
    parser.add_argument("--tag", help="Log tag carrying screenshot requests")
    parser.add_argument("--quiet-period", type=float, help="Seconds of startup backlog to ignore")
    parser.add_argument("--debug", action="store_true", default=None, help="Verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if key != "config"}

    try:
        settings = load_settings(args.config, **overrides)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        device = get_device(settings.serial, adb_path=settings.adb_path)
    except AdbError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    processors = build_processors(settings)
    if not processors:
        logger.warning("No processors configured, screenshots will be discarded")

    service = ScreenshotService(
        device,
        *processors,
        quiet_period=settings.quiet_period,
        tag=settings.tag,
        log_buffer=settings.log_buffer,
        min_priority=settings.min_priority,
    )

    print(f"Waiting for '{settings.tag}' log lines from {device.serial} (Ctrl-C to stop)")
    try:
        service.start()
        while service.monitor.is_alive():
            service.wait(timeout=1.0)
        logger.warning(f"Log stream from {device.serial} ended")
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        service.finish()
        device.close()
    return 0
