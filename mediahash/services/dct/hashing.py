from __future__ import annotations

"""
Fixed 64-bit DCT hash:
luma -> 7×7 box sum (replicate border) -> 32×32 nearest resize ->
D·img·Dᵗ -> 8×8 block at (1,1) -> threshold against the block median.
"""
import logging

import numpy as np

from mediahash.core.errors import InvalidInputError
from mediahash.models import Hash, HashMethod, PixelBuffer
from mediahash.services.pixels import luminance
from mediahash.services.serializer import split_u64
from mediahash.utils.profiling import profiled

from .kernels import BoundaryMode, convolve, median, mul_matrix, nn_resize
from .matrix import DCT_SIZE, dct_matrices

logger = logging.getLogger(__name__)

MEAN_FILTER = np.ones((7, 7), dtype=np.float32)
MEAN_FILTER.setflags(write=False)

CROP_OFFSET = 1
CROP_SIZE = 8


def threshold_bits(values: np.ndarray) -> int:
    """
    64-bit value with bit i set when values[i] > median(values).
    Bit 0 is the first element in scan order.
    """
    flat = np.asarray(values, dtype=np.float32).ravel()
    m = np.float32(median(flat))
    result = 0
    one = 1
    for v in flat.tolist():
        if v > m:
            result |= one
        one <<= 1
    return result


@profiled("dct.dct_image_hash")
def dct_image_hash(buf: PixelBuffer) -> Hash:
    """64-bit DCT hash as two 32-bit words [high, low]."""
    if buf.area == 0:
        return Hash.zeros(HashMethod.DCT64, 0)

    plane = luminance(buf)
    if plane is None:
        raise InvalidInputError(f"No luminance for {buf.width}x{buf.height} image")

    smoothed = convolve(plane, MEAN_FILTER, BoundaryMode.REPLICATE)
    resized = nn_resize(smoothed, DCT_SIZE, DCT_SIZE)

    d, dt = dct_matrices(DCT_SIZE)
    coeffs = mul_matrix(mul_matrix(d, resized), dt)

    end = CROP_OFFSET + CROP_SIZE
    block = coeffs[CROP_OFFSET:end, CROP_OFFSET:end]
    value = threshold_bits(block)
    logger.debug("dct hash %016x for %dx%d image", value, buf.width, buf.height)
    return Hash(HashMethod.DCT64, split_u64(value))
