"""
Framebuffer decoding.

Turns a ``RawFrame`` into a Pillow ``RGBA`` image. Alpha is always forced to
fully opaque: screenshots are never translucent, whatever the framebuffer's
alpha bits say.
"""

import logging

from PIL import Image

from .errors import MalformedFrame
from .frame import RawFrame

logger = logging.getLogger("ImageDecoder")

_OPAQUE = 0xFF


def _channel(value: int, offset: int, length: int) -> int:
    """Extract one channel and scale it up to 8 bits."""
    if length <= 0:
        return 0
    return ((value >> offset) & ((1 << length) - 1)) << (8 - length)


def _check(frame: RawFrame) -> None:
    if frame.width <= 0 or frame.height <= 0:
        raise MalformedFrame(f"Invalid frame geometry {frame.width}x{frame.height}")
    if frame.bytes_per_pixel <= 0:
        raise MalformedFrame(f"Unsupported bit depth: {frame.bits_per_pixel} bpp")
    layout = frame.layout
    for channel in ("red", "green", "blue", "alpha"):
        length = getattr(layout, f"{channel}_length")
        if length > 8:
            raise MalformedFrame(f"Unsupported {length}-bit {channel} channel")
    if len(frame.data) < frame.expected_size:
        raise MalformedFrame(
            f"Frame buffer too short: {len(frame.data)} bytes for "
            f"{frame.width}x{frame.height} at {frame.bits_per_pixel} bpp "
            f"(need {frame.expected_size})"
        )


def _decode_raw_mode(frame: RawFrame) -> Image.Image:
    layout = frame.layout
    data = bytes(frame.data[: frame.expected_size])
    size = (frame.width, frame.height)
    if layout.raw_mode == "RGB":
        return Image.frombytes("RGB", size, data, "raw", "RGB").convert("RGBA")
    image = Image.frombytes("RGBA", size, data, "raw", layout.raw_mode)
    image.putalpha(_OPAQUE)
    return image


def _decode_per_pixel(frame: RawFrame) -> Image.Image:
    layout = frame.layout
    step = frame.bytes_per_pixel
    data = frame.data
    out = bytearray(frame.width * frame.height * 4)

    index = 0
    pos = 0
    for _y in range(frame.height):
        for _x in range(frame.width):
            value = int.from_bytes(data[index : index + step], "little")
            out[pos] = _channel(value, layout.red_offset, layout.red_length)
            out[pos + 1] = _channel(value, layout.green_offset, layout.green_length)
            out[pos + 2] = _channel(value, layout.blue_offset, layout.blue_length)
            out[pos + 3] = _OPAQUE
            index += step
            pos += 4

    return Image.frombytes("RGBA", (frame.width, frame.height), bytes(out))


def decode_frame(frame: RawFrame) -> Image.Image:
    """
    Decode a raw framebuffer into an opaque RGBA image.

    Pixels are read row by row, top to bottom and left to right, with no
    flipping or rotation.

    Raises
    ------
    MalformedFrame
        If the geometry is not positive, the bit depth is under 8, or the
        buffer is shorter than ``width * height * bytes_per_pixel``.
    """
    _check(frame)
    if frame.layout.raw_mode is not None and frame.bits_per_pixel % 8 == 0:
        return _decode_raw_mode(frame)
    if frame.bits_per_pixel % 8:
        logger.warning(
            f"{frame.bits_per_pixel} bpp is not byte aligned, decoded colours will be wrong"
        )
    return _decode_per_pixel(frame)
