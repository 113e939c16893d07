from __future__ import annotations

"""
Hash <-> text/bytes conversions.

Block-mean bits are packed four per hex digit in reading order, the first bit
of each group being the most significant one. DCT words are printed as 8 hex
digits each, most significant word first; their binary form is little-endian
per word on every host.
"""

from typing import Sequence

import numpy as np

from mediahash.core.errors import InvalidInputError

WORD_HEX_DIGITS = 8


def bits_to_hex(bits: Sequence[int] | np.ndarray) -> str:
    """Pack 0/1 values into lowercase hex; length must be a multiple of 4."""
    arr = np.asarray(bits, dtype=np.uint8).ravel()
    if arr.size % 4:
        raise InvalidInputError(f"Bit count {arr.size} is not a multiple of 4")
    nibbles = arr.reshape(-1, 4) @ np.array([8, 4, 2, 1], dtype=np.uint8)
    return "".join("%x" % n for n in nibbles.tolist())


def hex_to_bits(text: str) -> np.ndarray:
    """Inverse of bits_to_hex."""
    try:
        nibbles = [int(ch, 16) for ch in text.strip()]
    except ValueError as e:
        raise InvalidInputError(f"Not a hex string: {text!r}") from e
    arr = np.array(nibbles, dtype=np.uint8).reshape(-1, 1)
    shifts = np.array([3, 2, 1, 0], dtype=np.uint8)
    return ((arr >> shifts) & 1).astype(np.uint8).ravel()


def words_to_hex(words: Sequence[int] | np.ndarray) -> str:
    """Concatenate 32-bit words as %08x each."""
    return "".join("%08x" % w for w in np.asarray(words, dtype=np.uint32).tolist())


def hex_to_words(text: str) -> np.ndarray:
    """Inverse of words_to_hex."""
    text = text.strip()
    if len(text) % WORD_HEX_DIGITS:
        raise InvalidInputError(
            f"Hex length {len(text)} is not a multiple of {WORD_HEX_DIGITS}"
        )
    try:
        words = [
            int(text[i : i + WORD_HEX_DIGITS], 16)
            for i in range(0, len(text), WORD_HEX_DIGITS)
        ]
    except ValueError as e:
        raise InvalidInputError(f"Not a hex string: {text!r}") from e
    return np.array(words, dtype=np.uint32)


def split_u64(value: int) -> np.ndarray:
    """64-bit value -> [high, low] 32-bit words."""
    value &= (1 << 64) - 1
    return np.array([value >> 32, value & 0xFFFFFFFF], dtype=np.uint32)


def join_u64(words: Sequence[int] | np.ndarray) -> int:
    """[high, low] 32-bit words -> 64-bit value."""
    high, low = (int(w) for w in np.asarray(words, dtype=np.uint32).tolist())
    return (high << 32) | low


def words_to_bytes(words: Sequence[int] | np.ndarray) -> bytes:
    """Little-endian 32-bit words, independent of the host byte order."""
    return np.asarray(words, dtype=np.uint32).astype("<u4").tobytes()


def bytes_to_words(raw: bytes) -> np.ndarray:
    if len(raw) % 4:
        raise InvalidInputError(f"Byte length {len(raw)} is not a multiple of 4")
    return np.frombuffer(raw, dtype="<u4").astype(np.uint32)


def format_grid(bits: Sequence[int] | np.ndarray, width: int) -> str:
    """Render 0/1 values as rows of `width` digits (debug output)."""
    arr = np.asarray(bits, dtype=np.uint8).ravel()
    if width <= 0:
        raise InvalidInputError(f"Grid width must be positive, got {width}")
    digits = "".join(str(b) for b in arr.tolist())
    return "\n".join(digits[i : i + width] for i in range(0, len(digits), width))
