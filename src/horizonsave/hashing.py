"""Checksum regions embedded in decrypted save data.

Each region stores a Murmur3 (x86, 32-bit, seed 0) digest as a little-endian
u32 at ``hash_offset``; the hashed bytes start right after it.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

_C1 = 0xCC9E2D51
_C2 = 0x1B873593
_MASK = 0xFFFFFFFF


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK


def murmur3_32(data: bytes, seed: int = 0) -> int:
    """Murmur3 x86 32-bit hash."""
    length = len(data)
    h = seed & _MASK
    blocks = length // 4
    for (k,) in struct.iter_unpack("<I", data[: blocks * 4]):
        k = (k * _C1) & _MASK
        k = _rotl(k, 15)
        k = (k * _C2) & _MASK
        h ^= k
        h = _rotl(h, 13)
        h = (h * 5 + 0xE6546B64) & _MASK

    tail = data[blocks * 4 :]
    k = 0
    if len(tail) >= 3:
        k ^= tail[2] << 16
    if len(tail) >= 2:
        k ^= tail[1] << 8
    if tail:
        k ^= tail[0]
        k = (k * _C1) & _MASK
        k = _rotl(k, 15)
        k = (k * _C2) & _MASK
        h ^= k

    h ^= length
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK
    h ^= h >> 16
    return h


class HashLayout(BaseModel):
    """Where a checksum lives inside a record, as listed in the revision table."""

    model_config = ConfigDict(frozen=True)

    hash_offset: int = Field(..., ge=0, description="Offset of the stored u32 digest")
    size: int = Field(..., gt=0, description="Number of bytes covered by the digest")

    @property
    def begin(self) -> int:
        return self.hash_offset + 4

    @property
    def end(self) -> int:
        return self.begin + self.size

    def compute(self, data: bytes) -> int:
        return murmur3_32(bytes(data[self.begin : self.end]))

    def stored(self, data: bytes) -> int:
        return struct.unpack_from("<I", data, self.hash_offset)[0]

    def fits(self, data: bytes) -> bool:
        return self.end <= len(data)

    def embed(self, data: bytearray) -> None:
        struct.pack_into("<I", data, self.hash_offset, self.compute(data))


@dataclass(frozen=True)
class HashRegion:
    """An invalid checksum range, reported without the record it belongs to."""

    offset: int
    length: int
    expected: bytes

    def __str__(self) -> str:
        return f"{self.offset:08X}-{self.offset + self.length:08X} (expected {self.expected.hex()})"


def find_invalid(layouts: Sequence[HashLayout], data: bytes) -> List[HashRegion]:
    """Return a HashRegion for every layout whose stored digest does not match."""
    invalid: List[HashRegion] = []
    for layout in layouts:
        if not layout.fits(data):
            invalid.append(HashRegion(layout.begin, layout.size, b""))
            continue
        computed = layout.compute(data)
        if computed != layout.stored(data):
            invalid.append(HashRegion(layout.begin, layout.size, struct.pack("<I", computed)))
    return invalid


def embed_all(layouts: Sequence[HashLayout], data: bytearray) -> int:
    """Recompute and store every digest that fits inside ``data``; returns the count written."""
    written = 0
    for layout in layouts:
        if layout.fits(data):
            layout.embed(data)
            written += 1
    return written
