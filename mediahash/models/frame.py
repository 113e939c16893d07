from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .hash import Hash


@dataclass
class FrameSample:
    """One of the four sampled video slots."""

    frame_index: int  # ordinal in the decoded stream
    hash: Optional[Hash] = None  # filled when the frame is reached
