"""
Pixel Preprocessor

Turns a decoded PixelBuffer into what each hashing method consumes:
RGBA samples for the block-mean family, a float32 luminance plane for the
DCT hash.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from mediahash.core.errors import ResourceError
from mediahash.models import ChannelLayout, HashMethod, PixelBuffer


def required_layout(method: HashMethod) -> ChannelLayout:
    """Channel layout a hashing method expects from the decoder."""
    return ChannelLayout.RGBA if method.is_blockmean else ChannelLayout.RGB


def convert_layout(buf: PixelBuffer, layout: ChannelLayout) -> PixelBuffer:
    """
    Return a buffer in `layout`, always backed by its own array.

    RGBA -> RGB drops alpha without compositing; RGB -> RGBA adds an opaque
    alpha channel.
    """
    if buf.layout is layout:
        return PixelBuffer(buf.width, buf.height, layout, buf.data.copy())
    try:
        if layout is ChannelLayout.RGB:
            data = np.ascontiguousarray(buf.data[:, :, :3])
        else:
            data = np.empty((buf.height, buf.width, 4), dtype=np.uint8)
            data[:, :, :3] = buf.data
            data[:, :, 3] = 255
    except MemoryError as e:
        raise ResourceError(
            f"Cannot allocate {layout.value} buffer for {buf.width}x{buf.height}"
        ) from e
    return PixelBuffer(buf.width, buf.height, layout, data)


def luminance(buf: PixelBuffer) -> Optional[np.ndarray]:
    """
    BT.601-style luma plane, Y = (66R + 129G + 25B + 128)/256 + 16, clamped
    to [0, 255].

    Returns None for a zero-area buffer; callers handle that case before
    hashing. Raises ResourceError when the plane cannot be allocated.
    """
    if buf.area == 0:
        return None
    try:
        rgb = buf.data[:, :, :3].astype(np.float32)
        y = (
            66.0 * rgb[:, :, 0] + 129.0 * rgb[:, :, 1] + 25.0 * rgb[:, :, 2] + 128.0
        ) / 256.0 + 16.0
    except MemoryError as e:
        raise ResourceError(
            f"Cannot allocate luminance plane for {buf.width}x{buf.height}"
        ) from e
    np.clip(y, 0.0, 255.0, out=y)
    return y.astype(np.float32, copy=False)


def prepare(buf: PixelBuffer, method: HashMethod) -> PixelBuffer:
    """Own copy of `buf` in the layout `method` needs."""
    return convert_layout(buf, required_layout(method))
