from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import List, Optional, Union

from . import crypto
from .hashing import HashLayout, HashRegion, embed_all, find_invalid
from .revisions import RecordRole, RevisionTable, load_revisions
from .utils.fs import write_bytes

logger = logging.getLogger(__name__)

DATA_SUFFIX = ".dat"
HEADER_SUFFIX = "Header.dat"


class PersistMode(str, enum.Enum):
    """How record files are written.

    - preserve: overwrite files in place, matching the console tooling
    - atomic: write each file to a temporary sibling and rename it into place
    """

    PRESERVE = "preserve"
    ATOMIC = "atomic"


def data_path_for(folder: Union[str, Path], name: str) -> Path:
    return Path(folder) / f"{name}{DATA_SUFFIX}"


def header_path_for(folder: Union[str, Path], name: str) -> Path:
    return Path(folder) / f"{name}{HEADER_SUFFIX}"


class EncryptedRecord:
    """One decrypted header/data file pair.

    ``data`` is the decrypted, mutable buffer. ``header`` keeps the version
    block so it can be written back unchanged on save.
    """

    def __init__(
        self,
        folder: Union[str, Path],
        role: RecordRole,
        revisions: Optional[RevisionTable] = None,
    ) -> None:
        self.role = role
        self.header_path = header_path_for(folder, role.value)
        self.data_path = data_path_for(folder, role.value)
        self._revisions = revisions

        header = self.header_path.read_bytes()
        encrypted = self.data_path.read_bytes()
        self.data = bytearray(crypto.decrypt(header, encrypted))
        self.header = bytes(header[: crypto.VERSION_LENGTH])
        logger.debug("Loaded %s (%#x bytes) from %s", role.value, len(self.data), self.data_path)

    @staticmethod
    def exists(folder: Union[str, Path], name: str) -> bool:
        """True when both the header and data files for ``name`` are present in ``folder``."""
        return header_path_for(folder, name).is_file() and data_path_for(folder, name).is_file()

    @property
    def name(self) -> str:
        return self.role.value

    @property
    def revisions(self) -> RevisionTable:
        return self._revisions if self._revisions is not None else load_revisions()

    @property
    def hash_layouts(self) -> tuple[HashLayout, ...]:
        return self.revisions.hash_layouts(self.role, len(self.data))

    def hash(self) -> None:
        """Recompute and embed every checksum region for this record's layout."""
        count = embed_all(self.hash_layouts, self.data)
        logger.debug("Embedded %d checksums in %s", count, self.name)

    def invalid_hashes(self) -> List[HashRegion]:
        return find_invalid(self.hash_layouts, self.data)

    def save(self, seed: int, mode: PersistMode = PersistMode.PRESERVE) -> None:
        """Encrypt with ``seed`` and overwrite the header and data files."""
        header, encrypted = crypto.encrypt(self.data, seed, self.header)
        atomic = mode == PersistMode.ATOMIC
        write_bytes(self.header_path, header, atomic=atomic)
        write_bytes(self.data_path, encrypted, atomic=atomic)
        logger.debug("Wrote %s with seed %#x (%s)", self.name, seed, mode.value)

    def replace_occurrences(self, original: bytes, updated: bytes) -> int:
        """Replace every non-overlapping occurrence of ``original``; returns how many were found.

        ``updated`` may differ in length, in which case the buffer grows or shrinks.
        """
        if not original:
            raise ValueError("original pattern must not be empty")
        count = self.data.count(original)
        if count:
            self.data[:] = self.data.replace(original, updated)
        return count

    def __repr__(self) -> str:
        return f"EncryptedRecord({self.name!r}, {str(self.data_path)!r}, {len(self.data):#x} bytes)"
