from __future__ import annotations

"""
Per-file orchestration for the CLI.

Keeps main.py slim: picks the image or video pipeline for a task, writes the
result line (and debug dumps) to the output stream, and turns per-file
failures into a logged error so the next file still gets processed.
"""

import logging
import sys
from typing import Optional, TextIO

from mediahash.core.config import settings
from mediahash.core.errors import MediaHashError
from mediahash.models import FrameSample, Hash
from mediahash.schemas import HashComputationTask
from mediahash.services.decoders import ImageDecoder, open_video
from mediahash.services.serializer import format_grid

from .image_pipeline import hash_image
from .video_pipeline import VideoHasher, VideoOpener

logger = logging.getLogger(__name__)


class TaskProcessor:
    """
    Runs HashComputationTasks one by one.

    process_task() returns False instead of raising when a file fails;
    the caller decides the exit status.
    """

    def __init__(
        self,
        *,
        out: Optional[TextIO] = None,
        image_decoder: Optional[ImageDecoder] = None,
        video_opener: VideoOpener = open_video,
    ) -> None:
        self.out = out or sys.stdout
        self.image_decoder = image_decoder or ImageDecoder()
        self.video_opener = video_opener

    def process_task(self, task: HashComputationTask) -> bool:
        try:
            if task.video:
                h = self._process_video(task)
            else:
                h = self._process_image(task)
        except (MediaHashError, OSError) as e:
            logger.error("Failed to hash '%s': %s", task.src_file_name, e)
            return False
        self._print(f"{h.to_hex()}  {task.src_file_name}")
        return True

    # ---- internals ----

    def _print(self, text: str) -> None:
        print(text, file=self.out)

    def _process_image(self, task: HashComputationTask) -> Hash:
        if task.debug:
            self._print(f"Processing image file '{task.src_file_name}'...")
        h = hash_image(
            task.src_file_name,
            task.effective_bits,
            task.hashing_method,
            decoder=self.image_decoder,
        )
        if task.debug:
            kind = "blockhash" if h.method.is_blockmean else "hash"
            self._dump(f"Dump of the image {kind}:", h, task.effective_bits)
        return h

    def _process_video(self, task: HashComputationTask) -> Hash:
        if task.debug:
            self._print(f"Processing video file '{task.src_file_name}'...")
        bits = task.effective_bits

        def on_frame(sample: FrameSample) -> None:
            self._dump(f"Dump of the frame#{sample.frame_index} hash:", sample.hash, bits)

        hasher = VideoHasher(
            bits=bits,
            method=task.hashing_method,
            opener=self.video_opener,
            image_decoder=self.image_decoder,
            on_frame=on_frame if task.debug else None,
            dump_frames=task.debug and settings.DUMP_FRAMES,
        )
        h = hasher.run(task.src_file_name)
        if task.debug and h.method.is_blockmean:
            self._print(format_grid(h.values, bits))
        return h

    def _dump(self, title: str, h: Hash, bits: int) -> None:
        self._print(title)
        if h.method.is_blockmean:
            self._print(format_grid(h.values, bits))
        else:
            self._print(h.to_hex())
