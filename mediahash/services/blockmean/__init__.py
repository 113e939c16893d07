"""
Block mean value hashing.

Public API is exposed from .hashing.
"""

from .hashing import blockhash, blockhash_quick, translate_blocks_to_bits

__all__ = ["blockhash", "blockhash_quick", "translate_blocks_to_bits"]
