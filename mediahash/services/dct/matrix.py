from __future__ import annotations

import threading

import numpy as np

DCT_SIZE = 32

_DCT_CACHE: dict[int, tuple[np.ndarray, np.ndarray]] = {}
_DCT_LOCK = threading.Lock()


def _build(n: int) -> tuple[np.ndarray, np.ndarray]:
    """Orthonormal DCT-II basis D (row 0 = 1/sqrt(n)) and its transpose."""
    y = np.arange(n, dtype=np.float64).reshape(-1, 1)
    x = np.arange(n, dtype=np.float64).reshape(1, -1)
    d = np.sqrt(2.0 / n) * np.cos((np.pi / 2 / n) * y * (2 * x + 1))
    d[0, :] = 1.0 / np.sqrt(n)
    d = d.astype(np.float32)
    dt = np.ascontiguousarray(d.T)
    d.setflags(write=False)
    dt.setflags(write=False)
    return d, dt


def dct_matrices(n: int = DCT_SIZE) -> tuple[np.ndarray, np.ndarray]:
    """Return the cached read-only (D, Dᵗ) pair; built once per process."""
    pair = _DCT_CACHE.get(n)
    if pair is None:
        with _DCT_LOCK:
            pair = _DCT_CACHE.get(n)
            if pair is None:
                pair = _build(n)
                _DCT_CACHE[n] = pair
    return pair
