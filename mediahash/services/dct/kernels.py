from __future__ import annotations

"""Numeric kernels on float32 planes: correlation, resize, matmul, selection."""
from enum import Enum

import cv2
import numpy as np

from mediahash.core.errors import DimensionMismatchError, InvalidInputError, ResourceError
from mediahash.utils import cv_ops


class BoundaryMode(str, Enum):
    """How samples outside the image are read."""

    REPLICATE = "replicate"  # clamp to the nearest edge pixel
    ZERO = "zero"  # contribute 0


_BORDERS = {
    BoundaryMode.REPLICATE: cv2.BORDER_REPLICATE,
    BoundaryMode.ZERO: cv2.BORDER_CONSTANT,
}


def convolve(
    image: np.ndarray,
    mask: np.ndarray,
    boundary: BoundaryMode = BoundaryMode.REPLICATE,
) -> np.ndarray:
    """
    Same-size correlation of `image` with `mask` (sums, not averages).

    The mask anchor is ((w-1)//2, (h-1)//2), i.e. the centre for odd sizes and
    the cell left/above the centre for even ones.
    """
    if image.ndim != 2 or image.size == 0:
        raise InvalidInputError(f"convolve: expected a non-empty plane, got {image.shape}")
    if mask.ndim != 2 or mask.size == 0:
        raise InvalidInputError(f"convolve: bad mask shape {mask.shape}")
    mh, mw = mask.shape
    try:
        return cv_ops.filter2D(
            image, mask, anchor=((mw - 1) // 2, (mh - 1) // 2), borderType=_BORDERS[boundary]
        )
    except MemoryError as e:
        raise ResourceError(f"convolve: cannot allocate {image.shape} result") from e


def nn_resize(img: np.ndarray, new_width: int, new_height: int) -> np.ndarray:
    """
    Nearest-neighbour resize: out[i, j] = img[floor(i*h/new_h), floor(j*w/new_w)].

    Returns `img` itself when the size already matches; callers must not
    mutate the result in place.
    """
    if img.ndim != 2 or img.size == 0:
        raise InvalidInputError(f"nn_resize: expected a non-empty plane, got {img.shape}")
    h, w = img.shape
    sx = max(1, int(new_width))
    sy = max(1, int(new_height))
    if sx == w and sy == h:
        return img
    rows = (np.arange(sy, dtype=np.int64) * h) // sy
    cols = (np.arange(sx, dtype=np.int64) * w) // sx
    try:
        return img[np.ix_(rows, cols)]
    except MemoryError as e:
        raise ResourceError(f"nn_resize: cannot allocate {sx}x{sy} result") from e


def mul_matrix(m1: np.ndarray, m2: np.ndarray) -> np.ndarray:
    """float32 matrix product with an explicit shape check."""
    if m1.ndim != 2 or m2.ndim != 2 or m1.shape[1] != m2.shape[0]:
        raise DimensionMismatchError(
            f"Cannot multiply {m1.shape} by {m2.shape}"
        )
    try:
        return np.matmul(m1.astype(np.float32, copy=False), m2.astype(np.float32, copy=False))
    except MemoryError as e:
        raise ResourceError("mul_matrix: cannot allocate result") from e


def kth_smallest(values: np.ndarray, k: int) -> float:
    """k-th order statistic (0-based) by selection; `values` is left untouched."""
    arr = np.asarray(values, dtype=np.float32).ravel()
    if not 0 <= k < arr.size:
        raise InvalidInputError(f"kth_smallest: k={k} out of range for {arr.size} values")
    return float(np.partition(arr, k)[k])


def median(values: np.ndarray) -> float:
    """Median by selection; even counts average the two central values."""
    arr = np.asarray(values, dtype=np.float32).ravel()
    n = arr.size
    if n == 0:
        raise InvalidInputError("median of an empty set")
    k = n >> 1
    if n % 2:
        return kth_smallest(arr, k)
    part = np.partition(arr, (k - 1, k))
    return float((part[k] + part[k - 1]) / np.float32(2))
