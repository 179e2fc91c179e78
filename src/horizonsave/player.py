from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .record import EncryptedRecord
from .revisions import RecordRole, RevisionTable

logger = logging.getLogger(__name__)

PERSONAL_ID_OFFSET = 0xB0
PERSONAL_ID_SIZE = 0x34
NAME_LENGTH = 20  # 10 UTF-16 code units


def _decode_name(raw: bytes) -> str:
    text = raw.decode("utf-16-le", errors="replace")
    return text.split("\x00", 1)[0]


def _encode_name(name: str) -> bytes:
    raw = name.encode("utf-16-le")
    if len(raw) > NAME_LENGTH:
        raise ValueError(f"Name {name!r} is longer than {NAME_LENGTH // 2} characters")
    return raw.ljust(NAME_LENGTH, b"\x00")


class PersonalRecord(EncryptedRecord):
    """personal.dat, which carries the player's identity block.

    Identity block layout (little-endian):
      +0x00 town id (u32), +0x04 town name,
      +0x1C player id (u32), +0x20 player name
    """

    def __init__(self, folder: Union[str, Path], revisions: Optional[RevisionTable] = None) -> None:
        super().__init__(folder, RecordRole.PERSONAL, revisions)

    def _name_at(self, rel: int) -> str:
        start = PERSONAL_ID_OFFSET + rel
        return _decode_name(bytes(self.data[start : start + NAME_LENGTH]))

    def _set_name_at(self, rel: int, value: str) -> None:
        start = PERSONAL_ID_OFFSET + rel
        self.data[start : start + NAME_LENGTH] = _encode_name(value)

    @property
    def town_id(self) -> int:
        return struct.unpack_from("<I", self.data, PERSONAL_ID_OFFSET)[0]

    @property
    def town_name(self) -> str:
        return self._name_at(0x04)

    @town_name.setter
    def town_name(self, value: str) -> None:
        self._set_name_at(0x04, value)

    @property
    def player_id(self) -> int:
        return struct.unpack_from("<I", self.data, PERSONAL_ID_OFFSET + 0x1C)[0]

    @property
    def player_name(self) -> str:
        return self._name_at(0x20)

    @player_name.setter
    def player_name(self, value: str) -> None:
        self._set_name_at(0x20, value)

    def get_personal_id(self) -> bytes:
        """Raw identity block, the pattern used when transferring ownership."""
        return bytes(self.data[PERSONAL_ID_OFFSET : PERSONAL_ID_OFFSET + PERSONAL_ID_SIZE])


class Player:
    """All records stored in one ``VillagerN`` folder.

    Iterating yields the present records in a fixed order: personal, photo,
    post box, profile, then where-are-n when the revision has it.
    """

    FOLDER_PREFIX = "Villager"
    MAX_PLAYERS = 8

    def __init__(self, folder: Union[str, Path], revisions: Optional[RevisionTable] = None) -> None:
        self.directory = Path(folder)
        self.personal = PersonalRecord(folder, revisions)
        self.photo = EncryptedRecord(folder, RecordRole.PHOTO, revisions)
        self.post_box = EncryptedRecord(folder, RecordRole.POST_BOX, revisions)
        self.profile = EncryptedRecord(folder, RecordRole.PROFILE, revisions)
        self.where_are_n: Optional[EncryptedRecord] = None
        if EncryptedRecord.exists(folder, RecordRole.WHERE_ARE_N.value):
            self.where_are_n = EncryptedRecord(folder, RecordRole.WHERE_ARE_N, revisions)

    def __iter__(self) -> Iterator[EncryptedRecord]:
        yield self.personal
        yield self.photo
        yield self.post_box
        yield self.profile
        if self.where_are_n is not None:
            yield self.where_are_n

    def __str__(self) -> str:
        return self.personal.player_name

    @classmethod
    def folder_name(cls, index: int) -> str:
        return f"{cls.FOLDER_PREFIX}{index}"

    @classmethod
    def read_many(cls, folder: Union[str, Path], revisions: Optional[RevisionTable] = None) -> Tuple["Player", ...]:
        """Load every player folder (Villager0..Villager7) found under ``folder``.

        Missing player folders are skipped; a player folder missing a required
        record raises FileNotFoundError.
        """
        root = Path(folder)
        players: List[Player] = []
        for index in range(cls.MAX_PLAYERS):
            directory = root / cls.folder_name(index)
            if not directory.is_dir():
                continue
            players.append(cls(directory, revisions))
        logger.debug("Loaded %d players from %s", len(players), root)
        return tuple(players)
