from __future__ import annotations

"""Thin OpenCV wrappers that normalize array layout before calling cv2."""

import logging
import os

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def _ensure_contiguous(a, dtype=None):
    """Гарантируем np.ndarray (dtype по запросу) и C_CONTIGUOUS layout."""
    if a is None:
        raise ValueError("cv_ops: got None as image")

    arr = a if isinstance(a, np.ndarray) else np.asarray(a)
    if dtype is not None and arr.dtype != dtype:
        arr = arr.astype(dtype, copy=False)

    if not arr.flags.c_contiguous:
        arr = np.ascontiguousarray(arr)
    return arr


def configure_threads(n: int | None) -> int:
    """Configure OpenCV thread count based on settings / CPU."""
    if n is None:
        n = max(1, (os.cpu_count() or 2) // 2)
    cv2.setNumThreads(int(n))
    logger.debug("OpenCV configured with %d threads", n)
    return int(n)


def cvtColor(src, code):
    src = _ensure_contiguous(src, np.uint8)
    return cv2.cvtColor(src, code)


def filter2D(src, kernel, anchor, borderType):
    """float32 correlation with an explicit anchor and border mode."""
    src = _ensure_contiguous(src, np.float32)
    kernel = _ensure_contiguous(kernel, np.float32)
    return cv2.filter2D(
        src, cv2.CV_32F, kernel, anchor=anchor, delta=0, borderType=borderType
    )


def imdecode(raw: bytes):
    """Decode an encoded image keeping alpha and bit depth; None on failure."""
    buf = np.frombuffer(raw, dtype=np.uint8)
    if buf.size == 0:
        return None
    return cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)


def imencode(ext: str, img) -> bytes | None:
    img = _ensure_contiguous(img, np.uint8)
    ok, buf = cv2.imencode(ext, img)
    if not ok:
        return None
    return buf.tobytes()
