"""Header-keyed AES-CTR encryption for save data files.

A header file is ``HEADER_LENGTH`` bytes: a version block followed by 128
little-endian u32 parameters. The parameters are drawn from a SEAD xorshift
generator seeded with the persist seed, and the AES key and counter are
derived from them, so the header alone is enough to decrypt the data file.
"""
from __future__ import annotations

import struct
from typing import List, Sequence, Tuple

from Crypto.Cipher import AES

from .errors import SaveFormatError

VERSION_LENGTH = 0x100
PARAM_COUNT = 0x80
HEADER_LENGTH = VERSION_LENGTH + PARAM_COUNT * 4

_MASK = 0xFFFFFFFF


class SeadRandom:
    """xorshift128 generator as used by the console SDK."""

    def __init__(self, seed: int) -> None:
        seed &= _MASK
        state = []
        prev = seed
        for i in range(1, 5):
            prev = (0x6C078965 * (prev ^ (prev >> 30)) + i) & _MASK
            state.append(prev)
        self._s0, self._s1, self._s2, self._s3 = state

    def next_u32(self) -> int:
        n = (self._s0 ^ (self._s0 << 11)) & _MASK
        self._s0 = self._s1
        self._s1 = self._s2
        self._s2 = self._s3
        self._s3 = (n ^ (n >> 8) ^ self._s3 ^ (self._s3 >> 19)) & _MASK
        return self._s3


def _derive(params: Sequence[int], index: int) -> bytes:
    rng = SeadRandom(params[params[index] & 0x7F])
    skip = params[params[index + 1] & 0x7F] & 0xF
    for _ in range(skip):
        rng.next_u32()
    return bytes((rng.next_u32() >> 24) & 0xFF for _ in range(16))


def _key_and_counter(params: Sequence[int]) -> Tuple[bytes, bytes]:
    return _derive(params, 0), _derive(params, 2)


def _cipher(params: Sequence[int]):
    key, counter = _key_and_counter(params)
    return AES.new(key, AES.MODE_CTR, nonce=b"", initial_value=counter)


def _params_from_header(header: bytes) -> List[int]:
    if len(header) != HEADER_LENGTH:
        raise SaveFormatError(
            f"Header must be {HEADER_LENGTH:#x} bytes, got {len(header):#x}"
        )
    return list(struct.unpack_from(f"<{PARAM_COUNT}I", header, VERSION_LENGTH))


def decrypt(header: bytes, encrypted: bytes) -> bytes:
    """Decrypt a data file using the parameters stored in its header."""
    return _cipher(_params_from_header(header)).decrypt(bytes(encrypted))


def encrypt(data: bytes, seed: int, version: bytes) -> Tuple[bytes, bytes]:
    """Encrypt ``data`` keyed by ``seed``; returns ``(header, encrypted)``.

    ``version`` is the version block copied into the new header, padded or
    cut to ``VERSION_LENGTH``.
    """
    rng = SeadRandom(seed)
    params = [rng.next_u32() for _ in range(PARAM_COUNT)]
    block = bytes(version[:VERSION_LENGTH]).ljust(VERSION_LENGTH, b"\x00")
    header = block + struct.pack(f"<{PARAM_COUNT}I", *params)
    return header, _cipher(params).encrypt(bytes(data))
