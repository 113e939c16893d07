"""
Video Decoder

Frame-by-frame access to the first video stream of a container through
cv2.VideoCapture. A handle is a context manager; leaving the block releases
the capture on every exit path.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

import cv2
import numpy as np

from mediahash.core.errors import SourceError
from mediahash.utils import cv_ops

logger = logging.getLogger(__name__)

STILL_FORMAT = ".bmp"


class VideoHandle(Protocol):
    """What the frame sampler needs from an opened video."""

    def frame_count(self) -> Optional[int]: ...

    def decode_next(self) -> Optional[np.ndarray]: ...

    def encode_as_still(self, frame: np.ndarray) -> bytes: ...

    def close(self) -> None: ...

    def __enter__(self) -> "VideoHandle": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class VideoSource:
    """
    cv2.VideoCapture wrapper.

    Usage:
        with VideoSource.open(path) as src:
            n = src.frame_count()
            frame = src.decode_next()
    """

    def __init__(self, path: Union[str, Path], capture: cv2.VideoCapture) -> None:
        self.path = str(path)
        self._cap: Optional[cv2.VideoCapture] = capture

    @classmethod
    def open(cls, path: Union[str, Path]) -> "VideoSource":
        if not Path(path).is_file():
            raise SourceError(f"Couldn't open video file '{path}': no such file")
        cap = cv2.VideoCapture(str(path))
        if not cap.isOpened():
            cap.release()
            raise SourceError(f"Couldn't open video file '{path}'")
        logger.debug("opened %s via %s", path, cap.getBackendName())
        return cls(path, cap)

    def _capture(self) -> cv2.VideoCapture:
        if self._cap is None:
            raise SourceError(f"Video file '{self.path}' is already closed")
        return self._cap

    def frame_count(self) -> Optional[int]:
        """Frame count from container metadata; None when it is not known."""
        n = self._capture().get(cv2.CAP_PROP_FRAME_COUNT)
        if not n or n < 0:
            return None
        return int(n)

    def decode_next(self) -> Optional[np.ndarray]:
        """Next frame in presentation order (BGR), None at end of stream."""
        ok, frame = self._capture().read()
        if not ok or frame is None:
            return None
        return frame

    def encode_as_still(self, frame: np.ndarray) -> bytes:
        """Self-contained 24-bit BMP of a decoded frame."""
        try:
            data = cv_ops.imencode(STILL_FORMAT, frame)
        except cv2.error as e:
            raise SourceError(f"Couldn't convert frame of '{self.path}' to image: {e}") from e
        if data is None:
            raise SourceError(f"Couldn't convert frame of '{self.path}' to image")
        return data

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "VideoSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_video(path: Union[str, Path]) -> VideoSource:
    return VideoSource.open(path)
