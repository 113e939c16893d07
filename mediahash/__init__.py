"""
mediahash: perceptual hashes for images and videos.

Block mean value hash (standard and quick) and a 64-bit DCT hash; videos are
fingerprinted by hashing four sampled frames.
"""

from mediahash.models import Hash, HashMethod, hamming_distance
from mediahash.services.pipelines import hash_image, hash_video

__version__ = "1.0.0"

__all__ = [
    "Hash",
    "HashMethod",
    "__version__",
    "hamming_distance",
    "hash_image",
    "hash_video",
]
