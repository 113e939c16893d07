from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
import pytest

from mediahash.models import ChannelLayout, PixelBuffer


def solid(width: int, height: int, rgba=(200, 200, 200, 255)) -> PixelBuffer:
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :] = rgba
    return PixelBuffer(width, height, ChannelLayout.RGBA, data)


def noise_rgb(width: int, height: int, seed: int = 0, lo: int = 0, hi: int = 256) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    data = rng.integers(lo, hi, size=(height, width, 3), dtype=np.uint8)
    return PixelBuffer(width, height, ChannelLayout.RGB, data)


def make_frame(index: int, width: int = 32, height: int = 24) -> np.ndarray:
    """Distinct BGR frame per index: a bright bar that moves with the index."""
    frame = np.full((height, width, 3), 30, dtype=np.uint8)
    x = (index * 3) % width
    frame[:, x : x + 4] = 230
    frame[(index * 5) % height, :] = 120
    return frame


class FakeVideo:
    """In-memory VideoHandle; records what the sampler asked for."""

    def __init__(self, owner: "FakeVideoOpener") -> None:
        self.owner = owner
        self.position = 0
        self.closed = False

    def frame_count(self) -> Optional[int]:
        return self.owner.reported_count

    def decode_next(self) -> Optional[np.ndarray]:
        if self.closed:
            raise AssertionError("decode after close")
        if self.position >= self.owner.actual_count:
            return None
        frame = make_frame(self.position)
        self.position += 1
        self.owner.decoded += 1
        return frame

    def encode_as_still(self, frame: np.ndarray) -> bytes:
        ok, buf = cv2.imencode(".bmp", frame)
        assert ok
        return buf.tobytes()

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeVideo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FakeVideoOpener:
    def __init__(self, actual_count: int, reported_count: Optional[int] = -1) -> None:
        self.actual_count = actual_count
        # -1: report the real count
        self.reported_count = actual_count if reported_count == -1 else reported_count
        self.handles: List[FakeVideo] = []
        self.decoded = 0

    def __call__(self, path: str) -> FakeVideo:
        for h in self.handles:
            assert h.closed, "previous decoder still open"
        h = FakeVideo(self)
        self.handles.append(h)
        return h


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """64x48 BGR image with a diagonal split."""
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    yy, xx = np.mgrid[0:48, 0:64]
    img[xx > yy] = (20, 180, 240)
    path = tmp_path / "split.png"
    assert cv2.imwrite(str(path), img)
    return path
