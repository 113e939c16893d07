from __future__ import annotations

"""
Block mean value perceptual hash (Bian Yang, Fan Gu, Xiamu Niu).

The image is split into a bits×bits grid; each cell accumulates R+G+B of the
pixels it covers (fully transparent pixels count as white, 765).

Thresholding follows the reference blockhash implementation rather than a
single global median: the grid is cut into four horizontal bands and each
cell is compared with the median of its own band. A cell within 1 of that
median is set when the median lies in the upper half of the value range.
"""
import numpy as np

from mediahash.core.errors import InvalidInputError, ResourceError
from mediahash.models import ChannelLayout, Hash, HashMethod, PixelBuffer
from mediahash.utils.profiling import profiled

BAND_COUNT = 4
TRANSPARENT_VALUE = 765
# rows converted to float64 at a time by the weighted path
ROW_CHUNK = 256


def _check_bits(bits: int) -> None:
    if bits <= 0 or (bits * bits) % BAND_COUNT:
        raise InvalidInputError(f"Unsupported grid size: {bits}")


def pixel_values(buf: PixelBuffer) -> np.ndarray:
    """Per-pixel R+G+B (int32, H×W); alpha 0 -> 765."""
    d = buf.data
    try:
        v = d[:, :, 0].astype(np.int32) + d[:, :, 1] + d[:, :, 2]
    except MemoryError as e:
        raise ResourceError(
            f"Cannot allocate value plane for {buf.width}x{buf.height}"
        ) from e
    if buf.layout is ChannelLayout.RGBA:
        v[d[:, :, 3] == 0] = TRANSPARENT_VALUE
    return v


def translate_blocks_to_bits(blocks, pixels_per_block: float) -> np.ndarray:
    """
    Threshold block sums into 0/1, band by band.

    A block is 1 when it is brighter than its band median. With images
    dominated by black or white many blocks equal the median; those become 1
    only when the median sits in the upper half of the value range.
    """
    values = np.asarray(blocks, dtype=np.float64).ravel()
    half_block_value = pixels_per_block * 256 * 3 / 2
    bandsize = values.size // BAND_COUNT
    out = np.zeros(values.size, dtype=np.uint8)
    for i in range(BAND_COUNT):
        sl = slice(i * bandsize, (i + 1) * bandsize)
        band = values[sl]
        m = float(np.median(band))
        out[sl] = (band > m) | ((np.abs(band - m) < 1) & (m > half_block_value))
    return out


def _even_blocks(values: np.ndarray, bits: int) -> tuple[np.ndarray, int]:
    """Integer-sized blocks; the right/bottom remainder is ignored."""
    H, W = values.shape
    bh, bw = H // bits, W // bits
    blocks = values[: bh * bits, : bw * bits].reshape(bits, bh, bits, bw).sum(axis=(1, 3))
    return blocks, bw * bh


def _axis_weights(size: int, bits: int) -> np.ndarray:
    """
    (size, bits) overlap of pixel i with cell j along one axis, in units of
    1/bits pixel: pixel i spans [i*bits, (i+1)*bits), cell j spans
    [j*size, (j+1)*size). A pixel straddling a cell boundary is split by the
    covered fraction, as in the reference blockhash.

    Weights are integers, so weighted sums stay exact in float64.
    """
    px = np.arange(size, dtype=np.int64).reshape(-1, 1)
    cell = np.arange(bits, dtype=np.int64).reshape(1, -1)
    lo = np.maximum(px * bits, cell * size)
    hi = np.minimum((px + 1) * bits, (cell + 1) * size)
    return np.clip(hi - lo, 0, None).astype(np.float64)


@profiled("blockmean.blockhash_quick")
def blockhash_quick(buf: PixelBuffer, bits: int) -> Hash:
    """Quick variant: integer block sizes, no boundary weighting."""
    _check_bits(bits)
    if buf.area == 0:
        return Hash.zeros(HashMethod.BLOCKHASH_QUICK, bits)
    blocks, ppb = _even_blocks(pixel_values(buf), bits)
    return Hash(HashMethod.BLOCKHASH_QUICK, translate_blocks_to_bits(blocks, ppb))


@profiled("blockmean.blockhash")
def blockhash(buf: PixelBuffer, bits: int) -> Hash:
    """Standard variant: area-weighted cells covering the whole image."""
    _check_bits(bits)
    if buf.area == 0:
        return Hash.zeros(HashMethod.BLOCKHASH, bits)

    values = pixel_values(buf)
    W, H = buf.width, buf.height
    if W % bits == 0 and H % bits == 0:
        blocks, ppb = _even_blocks(values, bits)
        return Hash(HashMethod.BLOCKHASH, translate_blocks_to_bits(blocks, ppb))

    try:
        wy = _axis_weights(H, bits)
        wx = _axis_weights(W, bits)
        rows = np.zeros((bits, W), dtype=np.float64)
        for y0 in range(0, H, ROW_CHUNK):
            y1 = min(H, y0 + ROW_CHUNK)
            rows += wy[y0:y1].T @ values[y0:y1].astype(np.float64)
        blocks = (rows @ wx) / float(bits * bits)
    except MemoryError as e:
        raise ResourceError(f"Cannot allocate block grid for {W}x{H}") from e

    ppb = (W / bits) * (H / bits)
    return Hash(HashMethod.BLOCKHASH, translate_blocks_to_bits(blocks, ppb))
