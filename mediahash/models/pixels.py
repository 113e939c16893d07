"""
Pixel buffer model

Raw decoded pixels with a known geometry and channel layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from mediahash.core.errors import InvalidInputError


class ChannelLayout(str, Enum):
    """Interleaved sample order of a pixel buffer."""

    RGB = "RGB"
    RGBA = "RGBA"

    @property
    def channels(self) -> int:
        return len(self.value)

    @classmethod
    def for_channels(cls, channels: int) -> "ChannelLayout":
        for layout in cls:
            if layout.channels == channels:
                return layout
        raise InvalidInputError(f"Unsupported channel count: {channels}")


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Row-major interleaved 8-bit samples.

    Attributes:
        width: Image width in pixels
        height: Image height in pixels
        layout: RGB (3 samples per pixel) or RGBA (4 samples per pixel)
        data: uint8 array shaped (height, width, channels)
    """

    width: int
    height: int
    layout: ChannelLayout
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise InvalidInputError(
                f"Negative image dimensions: {self.width}x{self.height}"
            )
        expected = (self.height, self.width, self.layout.channels)
        if self.data.dtype != np.uint8 or self.data.shape != expected:
            raise InvalidInputError(
                f"Pixel data {self.data.dtype}{self.data.shape} does not match "
                f"{self.layout.value} {self.width}x{self.height}"
            )

    @classmethod
    def from_bytes(
        cls, raw: bytes, width: int, height: int, layout: ChannelLayout
    ) -> "PixelBuffer":
        """Wrap a raw interleaved byte string; length must be w*h*channels."""
        if width < 0 or height < 0:
            raise InvalidInputError(f"Negative image dimensions: {width}x{height}")
        expected = width * height * layout.channels
        if len(raw) != expected:
            raise InvalidInputError(
                f"Buffer holds {len(raw)} bytes, expected {expected} "
                f"for {layout.value} {width}x{height}"
            )
        arr = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, layout.channels)
        return cls(width, height, layout, arr.copy())

    @property
    def channels(self) -> int:
        return self.layout.channels

    @property
    def area(self) -> int:
        return self.width * self.height

    def tobytes(self) -> bytes:
        return self.data.tobytes()
