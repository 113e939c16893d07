from __future__ import annotations

"""
Video pipeline: frame sampling and hash aggregation.

Four frames are picked from the decoded stream (first, ~35%, ~70%, last;
the ten frames at both ends are skipped for longer clips). Each sampled frame
goes through a BMP round trip and is hashed like a still image; the four
partial hashes are concatenated in slot order.

When the container does not report a frame count, the stream is decoded once
just to count frames and then reopened with a fresh decoder for sampling.
"""

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from mediahash.core.config import settings
from mediahash.core.errors import DecodeError, SourceError
from mediahash.models import FrameSample, Hash, HashMethod
from mediahash.services.decoders import ImageDecoder, VideoHandle, open_video
from mediahash.services.pixels import required_layout
from mediahash.utils.profiling import profiled

from .image_pipeline import compute_image_hash

logger = logging.getLogger(__name__)

HASH_PART_COUNT = 4
EDGE_SKIP = 10  # frames ignored at both ends when the clip is long enough

VideoOpener = Callable[[str], VideoHandle]
FrameCallback = Callable[[FrameSample], None]


class DecodePhase(str, Enum):
    COUNTING = "counting"
    SAMPLING = "sampling"


def sample_indices(frame_count: int) -> List[int]:
    """
    Frame ordinals of the four slots, in slot order (not sorted).

    Empty for a stream without frames.
    """
    if frame_count <= 0:
        return []
    if frame_count > EDGE_SKIP:
        first, last = EDGE_SKIP, frame_count - EDGE_SKIP - 1
    else:
        first, last = 0, frame_count - 1
    return [
        first,
        int(math.floor(frame_count * 0.35)),
        int(math.floor(frame_count * 0.7)),
        last,
    ]


def frame_dump_path(src: Union[str, Path], index: int) -> Path:
    return Path(f"{src}-frm-{index}.bmp")


class VideoHasher:
    """
    Computes the aggregated hash of one video file.

    Usage:
        hasher = VideoHasher(bits=8, method=HashMethod.BLOCKHASH)
        h = hasher.run("clip.mp4")
    """

    def __init__(
        self,
        *,
        bits: int,
        method: HashMethod = HashMethod.BLOCKHASH,
        opener: VideoOpener = open_video,
        image_decoder: Optional[ImageDecoder] = None,
        on_frame: Optional[FrameCallback] = None,
        dump_frames: bool = False,
    ) -> None:
        self.bits = bits
        self.method = HashMethod.parse(method)
        self.opener = opener
        self.image_decoder = image_decoder or ImageDecoder()
        self.on_frame = on_frame
        self.dump_frames = dump_frames

    # ---- public API ----

    @profiled("video.run")
    def run(self, path: Union[str, Path]) -> Hash:
        path = str(path)
        frame_count: Optional[int] = None
        phase = DecodePhase.SAMPLING

        while True:
            with self.opener(path) as src:
                if frame_count is None:
                    frame_count = src.frame_count()
                    if frame_count is None:
                        phase = DecodePhase.COUNTING

                if phase is DecodePhase.COUNTING:
                    frame_count = self._count_frames(src)
                    logger.info("%s: counted %d frames", path, frame_count)
                    phase = DecodePhase.SAMPLING
                    # leaving the block releases the first decoder before reopening
                    continue

                return self._sample(src, path, frame_count)

    # ---- internals ----

    @staticmethod
    def _count_frames(src: VideoHandle) -> int:
        n = 0
        while src.decode_next() is not None:
            n += 1
        return n

    def _sample(self, src: VideoHandle, path: str, frame_count: int) -> Hash:
        indices = sample_indices(frame_count)
        if not indices:
            logger.warning("%s: no frames, emitting an empty hash", path)
            return Hash.zeros(self.method, self.bits)

        logger.debug("%s: %d frames, sampling %s", path, frame_count, indices)
        slots = [FrameSample(i) for i in indices]
        remaining = len(slots)
        current = 0
        while remaining:
            frame = src.decode_next()
            if frame is None:
                missing = sorted({s.frame_index for s in slots if s.hash is None})
                raise SourceError(
                    f"Stream of '{path}' ended after {current} frames; "
                    f"frames {missing} were never decoded"
                )

            still: Optional[bytes] = None
            for slot in slots:
                if slot.hash is not None or slot.frame_index != current:
                    continue
                if still is None:
                    still = src.encode_as_still(frame)
                    if self.dump_frames:
                        self._dump(path, current, still)
                slot.hash = self._hash_still(path, current, still)
                remaining -= 1
                if self.on_frame is not None:
                    self.on_frame(slot)
            current += 1

        return Hash.concat([s.hash for s in slots])

    def _hash_still(self, path: str, index: int, still: bytes) -> Hash:
        name = f"{path}#{index}"
        try:
            decoded = self.image_decoder.decode(still, name=name)
        except DecodeError as e:
            raise SourceError(f"Couldn't read frame #{index} of '{path}': {e}") from e
        buf = self.image_decoder.export(decoded, required_layout(self.method))
        return compute_image_hash(buf, self.bits, self.method)

    def _dump(self, path: str, index: int, still: bytes) -> None:
        dst = frame_dump_path(path, index)
        try:
            dst.write_bytes(still)
        except OSError as e:
            logger.warning("Couldn't save frame dump %s: %s", dst, e)


def hash_video(
    path: Union[str, Path],
    bits: int = 8,
    method: HashMethod = HashMethod.BLOCKHASH,
    *,
    opener: VideoOpener = open_video,
    on_frame: Optional[FrameCallback] = None,
    dump_frames: bool = False,
) -> Hash:
    """
    Aggregated hash of a video: four per-frame hashes of `bits` grid size.

    `bits` is the per-frame grid size (the CLI halves its --bits for video).
    """
    hasher = VideoHasher(
        bits=bits,
        method=method,
        opener=opener,
        on_frame=on_frame,
        dump_frames=dump_frames and settings.DUMP_FRAMES,
    )
    return hasher.run(path)
