from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import UnknownRevisionError
from .record import EncryptedRecord
from .revisions import UNKNOWN_REVISION, HeaderSignature, RecordRole, Revision, RevisionTable

_SAVE_DATE = struct.Struct("<HBBBB")


@dataclass(frozen=True)
class SaveDate:
    """In-game timestamp of the last save."""

    year: int
    month: int
    day: int
    hour: int
    minute: int

    @classmethod
    def from_bytes(cls, data: bytes, offset: int) -> "SaveDate":
        return cls(*_SAVE_DATE.unpack_from(data, offset))

    def write(self, data: bytearray, offset: int) -> None:
        _SAVE_DATE.pack_into(data, offset, self.year, self.month, self.day, self.hour, self.minute)

    @property
    def timestamp(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:{self.minute:02d}"


class HeaderInfo:
    """Revision metadata read from the main header's version block."""

    def __init__(self, signature: HeaderSignature, revisions: RevisionTable) -> None:
        self.signature = signature
        self._revisions = revisions

    def get_known_revision_index(self) -> int:
        return self._revisions.find(self.signature)

    def get_known_revision(self) -> Optional[Revision]:
        index = self.get_known_revision_index()
        if index == UNKNOWN_REVISION:
            return None
        return self._revisions[index]


class MainSave(EncryptedRecord):
    """The main.dat record holding world state."""

    def __init__(self, folder: Union[str, Path], revisions: Optional[RevisionTable] = None) -> None:
        super().__init__(folder, RecordRole.MAIN, revisions)

    @property
    def info(self) -> HeaderInfo:
        return HeaderInfo(HeaderSignature.from_bytes(self.header), self.revisions)

    def _require_revision(self) -> Revision:
        revision = self.info.get_known_revision()
        if revision is None:
            raise UnknownRevisionError(f"Unrecognized save revision: {self.info.signature}")
        return revision

    @property
    def last_saved(self) -> SaveDate:
        return SaveDate.from_bytes(self.data, self._require_revision().offsets.last_saved)

    @last_saved.setter
    def last_saved(self, value: SaveDate) -> None:
        value.write(self.data, self._require_revision().offsets.last_saved)
