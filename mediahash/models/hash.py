"""
Hash model

A fixed-length, immutable sequence of unsigned integers produced by one of
the hashing methods. Block-mean hashes hold one 0/1 value per grid cell;
DCT hashes hold 32-bit words (two per image).
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

import numpy as np

from mediahash.core.errors import InvalidInputError
from mediahash.services import serializer

DCT_HASH_WORDS = 2


class HashMethod(str, Enum):
    BLOCKHASH = "blockhash"
    BLOCKHASH_QUICK = "blockhash-quick"
    DCT64 = "dct64"

    @property
    def is_blockmean(self) -> bool:
        return self is not HashMethod.DCT64

    @property
    def dtype(self) -> type:
        return np.uint8 if self.is_blockmean else np.uint32

    @classmethod
    def parse(cls, value: "str | HashMethod") -> "HashMethod":
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidInputError(f"Unknown hashing method: {value!r}") from e

    def hash_length(self, bits: int) -> int:
        """Number of values one image hash holds for a grid size."""
        return bits * bits if self.is_blockmean else DCT_HASH_WORDS


class Hash:
    """Immutable hash values tagged with the method that produced them."""

    __slots__ = ("method", "values")

    def __init__(self, method: HashMethod, values: Iterable[int] | np.ndarray) -> None:
        arr = np.array(values, dtype=method.dtype).ravel()
        if method.is_blockmean and arr.size and int(arr.max()) > 1:
            raise InvalidInputError("Block-mean hash values must be 0 or 1")
        arr.setflags(write=False)
        self.method = method
        self.values = arr

    @classmethod
    def zeros(cls, method: HashMethod, bits: int) -> "Hash":
        """All-zero hash of the single-image length (no visual content)."""
        return cls(method, np.zeros(method.hash_length(bits), dtype=method.dtype))

    @classmethod
    def concat(cls, parts: Sequence["Hash"]) -> "Hash":
        """Join partial hashes in the given order."""
        if not parts:
            raise InvalidInputError("Nothing to concatenate")
        method = parts[0].method
        if any(p.method is not method for p in parts):
            raise InvalidInputError("Cannot concatenate hashes of different methods")
        return cls(method, np.concatenate([p.values for p in parts]))

    def __len__(self) -> int:
        return int(self.values.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hash):
            return NotImplemented
        return self.method is other.method and np.array_equal(self.values, other.values)

    def __hash__(self) -> int:
        return hash((self.method, self.values.tobytes()))

    def __repr__(self) -> str:
        return f"Hash({self.method.value}, {self.to_hex()})"

    def to_hex(self) -> str:
        if self.method.is_blockmean:
            return serializer.bits_to_hex(self.values)
        return serializer.words_to_hex(self.values)

    @classmethod
    def from_hex(cls, method: HashMethod, text: str) -> "Hash":
        if method.is_blockmean:
            return cls(method, serializer.hex_to_bits(text))
        return cls(method, serializer.hex_to_words(text))


def hamming_distance(a: Hash, b: Hash) -> int:
    """Number of differing bits between two hashes of the same shape."""
    if a.method.is_blockmean != b.method.is_blockmean or len(a) != len(b):
        raise InvalidInputError("Hashes are not comparable")
    x = np.bitwise_xor(a.values, b.values)
    return sum(int(v).bit_count() for v in x.tolist())
