"""
Raw framebuffer geometry and pixel layouts.

Offsets are bit offsets into the pixel value, read little-endian from
``bits_per_pixel // 8`` bytes, which is how Android's framebuffer describes
its channels.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PixelLayout:
    bits_per_pixel: int
    red_offset: int
    red_length: int
    green_offset: int
    green_length: int
    blue_offset: int
    blue_length: int
    alpha_offset: int = 0
    alpha_length: int = 0
    # Pillow raw mode able to decode this layout directly, if any
    raw_mode: Optional[str] = None


RGBA_8888 = PixelLayout(32, 0, 8, 8, 8, 16, 8, 24, 8, raw_mode="RGBA")
RGBX_8888 = PixelLayout(32, 0, 8, 8, 8, 16, 8, 24, 0, raw_mode="RGBA")
BGRA_8888 = PixelLayout(32, 16, 8, 8, 8, 0, 8, 24, 8, raw_mode="BGRA")
RGB_888 = PixelLayout(24, 0, 8, 8, 8, 16, 8, raw_mode="RGB")
RGB_565 = PixelLayout(16, 11, 5, 5, 6, 0, 5)


@dataclass(frozen=True)
class RawFrame:
    """One undecoded screenshot as handed over by the device."""

    width: int
    height: int
    data: bytes
    layout: PixelLayout = RGBA_8888

    @property
    def bits_per_pixel(self) -> int:
        return self.layout.bits_per_pixel

    @property
    def bytes_per_pixel(self) -> int:
        return self.layout.bits_per_pixel >> 3

    @property
    def expected_size(self) -> int:
        return self.width * self.height * self.bytes_per_pixel
