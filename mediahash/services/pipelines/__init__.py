"""
End-to-end hashing pipelines: decode, preprocess, hash, report.
"""

from .image_pipeline import compute_image_hash, hash_image
from .processor import TaskProcessor
from .video_pipeline import DecodePhase, VideoHasher, hash_video, sample_indices

__all__ = [
    "DecodePhase",
    "TaskProcessor",
    "VideoHasher",
    "compute_image_hash",
    "hash_image",
    "hash_video",
    "sample_indices",
]
