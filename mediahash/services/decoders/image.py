"""
Image Decoder

Reads a still image from a path or an in-memory blob and exports its pixels
as a PixelBuffer in RGB or RGBA order.

OpenCV hands back the stored samples as they are: embedded ICC profiles and
EXIF orientation are not applied (IMREAD_UNCHANGED), so two files that differ
only in their color-profile metadata decode to the same pixels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from mediahash.core.errors import DecodeError, ResourceError
from mediahash.models import ChannelLayout, PixelBuffer
from mediahash.utils import cv_ops

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, bytearray, memoryview]

# (source channels, target layout) -> cv2 conversion code
_CONVERSIONS = {
    (1, ChannelLayout.RGB): cv2.COLOR_GRAY2RGB,
    (1, ChannelLayout.RGBA): cv2.COLOR_GRAY2RGBA,
    (3, ChannelLayout.RGB): cv2.COLOR_BGR2RGB,
    (3, ChannelLayout.RGBA): cv2.COLOR_BGR2RGBA,
    (4, ChannelLayout.RGB): cv2.COLOR_BGRA2RGB,
    (4, ChannelLayout.RGBA): cv2.COLOR_BGRA2RGBA,
}


@dataclass(frozen=True)
class DecodedImage:
    """8-bit decoded samples in OpenCV order (gray, BGR or BGRA)."""

    name: str
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])


def _to_uint8(img: np.ndarray) -> np.ndarray:
    """Scale 16-bit and float samples down to 8 bits."""
    if img.dtype == np.uint8:
        return img
    if img.dtype == np.uint16:
        return (img >> 8).astype(np.uint8)
    if np.issubdtype(img.dtype, np.floating):
        return np.clip(img * 255.0, 0.0, 255.0).astype(np.uint8)
    raise DecodeError(f"Unsupported sample type {img.dtype}")


class ImageDecoder:
    """OpenCV-backed still image decoder."""

    def decode(self, source: ImageSource, *, name: str | None = None) -> DecodedImage:
        """
        Decode a file path or an encoded byte blob.

        Raises DecodeError when the data cannot be read or is not an image.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            raw = bytes(source)
            label = name or "<memory>"
        else:
            label = name or str(source)
            try:
                raw = Path(source).read_bytes()
            except OSError as e:
                raise DecodeError(f"Couldn't read image file '{label}': {e}") from e

        try:
            img = cv_ops.imdecode(raw)
        except cv2.error as e:
            raise DecodeError(f"Couldn't decode image '{label}': {e}") from e
        except MemoryError as e:
            raise ResourceError(f"Couldn't allocate pixels for '{label}'") from e
        if img is None:
            raise DecodeError(f"Couldn't decode image '{label}'")

        img = _to_uint8(img)
        if img.ndim == 3 and img.shape[2] == 1:
            img = img[:, :, 0]
        logger.debug("decoded %s: %s %s", label, img.shape, img.dtype)
        return DecodedImage(label, img)

    def export(self, decoded: DecodedImage, layout: ChannelLayout) -> PixelBuffer:
        """Pixels of `decoded` as an owned RGB/RGBA buffer."""
        w, h = decoded.width, decoded.height
        if w == 0 or h == 0:
            return PixelBuffer(w, h, layout, np.zeros((h, w, layout.channels), np.uint8))

        code = _CONVERSIONS.get((decoded.channels, layout))
        if code is None:
            raise DecodeError(
                f"Couldn't convert {decoded.channels}-channel image '{decoded.name}' "
                f"to {layout.value}"
            )
        try:
            data = cv_ops.cvtColor(decoded.pixels, code)
        except MemoryError as e:
            raise ResourceError(f"Couldn't allocate {layout.value} pixels for '{decoded.name}'") from e
        return PixelBuffer(w, h, layout, data)

    def load(self, source: ImageSource, layout: ChannelLayout) -> PixelBuffer:
        """decode + export in one call."""
        return self.export(self.decode(source), layout)
