from __future__ import annotations

"""
Still image pipeline: decoded pixels -> method-specific preprocessing -> hash.
"""

import logging
from typing import Callable, Dict, Optional, Union

from mediahash.models import Hash, HashMethod, PixelBuffer
from mediahash.services.blockmean import blockhash, blockhash_quick
from mediahash.services.decoders import ImageDecoder
from mediahash.services.decoders.image import ImageSource
from mediahash.services.dct import dct_image_hash
from mediahash.services.pixels import prepare, required_layout

logger = logging.getLogger(__name__)

_HASHERS: Dict[HashMethod, Callable[[PixelBuffer, int], Hash]] = {
    HashMethod.BLOCKHASH: blockhash,
    HashMethod.BLOCKHASH_QUICK: blockhash_quick,
    # DCT hash has a fixed 8x8 output; the grid size does not apply
    HashMethod.DCT64: lambda buf, bits: dct_image_hash(buf),
}


def compute_image_hash(buf: PixelBuffer, bits: int, method: HashMethod) -> Hash:
    """Hash an already decoded image. The caller's buffer is left untouched."""
    return _HASHERS[method](prepare(buf, method), bits)


def hash_image(
    source: Union[ImageSource, PixelBuffer],
    bits: int = 16,
    method: HashMethod = HashMethod.BLOCKHASH,
    *,
    decoder: Optional[ImageDecoder] = None,
) -> Hash:
    """
    Hash an image file, an encoded blob or a PixelBuffer.

    Example:
        >>> h = hash_image("photo.jpg", bits=16)
        >>> h.to_hex()[:8]
    """
    method = HashMethod.parse(method)
    if isinstance(source, PixelBuffer):
        return compute_image_hash(source, bits, method)

    decoder = decoder or ImageDecoder()
    decoded = decoder.decode(source)
    buf = decoder.export(decoded, required_layout(method))
    logger.debug("hashing %s (%dx%d) with %s", decoded.name, buf.width, buf.height, method.value)
    return compute_image_hash(buf, bits, method)
