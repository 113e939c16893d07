"""
Plain data carriers shared by the hashing services.
"""

from .frame import FrameSample
from .hash import Hash, HashMethod, hamming_distance
from .pixels import ChannelLayout, PixelBuffer

__all__ = [
    "ChannelLayout",
    "FrameSample",
    "Hash",
    "HashMethod",
    "PixelBuffer",
    "hamming_distance",
]
