import random
import sys
from pathlib import Path
from typing import Dict, Optional

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from horizonsave import crypto  # noqa: E402
from horizonsave.hashing import embed_all  # noqa: E402
from horizonsave.main_save import SaveDate  # noqa: E402
from horizonsave.player import PERSONAL_ID_OFFSET, Player  # noqa: E402
from horizonsave.record import data_path_for, header_path_for  # noqa: E402
from horizonsave.revisions import RecordRole, RevisionTable  # noqa: E402

LAST_SAVED = 0x20

TABLE = {
    "revisions": [
        {
            "name": "old",
            "header": {"major": 0x10, "minor": 0x11, "unk1": 2, "unk2": 2, "save_revision": 0},
            "sizes": {
                "main_length": 0x200,
                "personal_length": 0x120,
                "photo_length": 0x40,
                "post_box_length": 0x30,
                "profile_length": 0x50,
            },
            "offsets": {"last_saved": LAST_SAVED},
            "hashes": {
                "main": [[0x40, 0x80], [0xC4, 0x100]],
                "personal": [[0x00, 0x100]],
                "photo_studio_island": [[0x00, 0x3C]],
                "profile": [[0x10, 0x3C]],
            },
        },
        {
            "name": "new",
            "header": {"major": 0x20, "minor": 0x21, "unk1": 2, "unk2": 2, "save_revision": 1},
            "sizes": {
                "main_length": 0x240,
                "personal_length": 0x140,
                "photo_length": 0x44,
                "post_box_length": 0x34,
                "profile_length": 0x54,
                "where_are_n_length": 0x60,
            },
            "offsets": {"last_saved": LAST_SAVED},
            "hashes": {
                "main": [[0x40, 0x80], [0xC4, 0x140]],
                "personal": [[0x00, 0x120]],
                "postbox": [[0x00, 0x30]],
                "wherearen": [[0x08, 0x50]],
            },
        },
    ]
}


@pytest.fixture()
def revisions() -> RevisionTable:
    return RevisionTable.from_dict(TABLE)


def write_record(folder: Path, role: RecordRole, data: bytes, version: bytes, seed: int = 0x1234) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    header, encrypted = crypto.encrypt(data, seed, version)
    header_path_for(folder, role.value).write_bytes(header)
    data_path_for(folder, role.value).write_bytes(encrypted)


def _name_bytes(name: str) -> bytes:
    return name.encode("utf-16-le").ljust(20, b"\x00")


class SaveFactory:
    """Writes synthetic, correctly hashed save folders for one revision table."""

    def __init__(self, table: RevisionTable) -> None:
        self.table = table

    def build(
        self,
        folder: Path,
        revision: int = 0,
        players: int = 1,
        *,
        town: str = "Nook Isle",
        player_names: Optional[list] = None,
        lengths: Optional[Dict[RecordRole, Optional[int]]] = None,
        where_are_n: Optional[bool] = None,
        date: SaveDate = SaveDate(2021, 3, 14, 9, 26),
        seed: int = 0x1234,
    ) -> Path:
        entry = self.table[revision]
        version = entry.header.to_bytes()
        lengths = dict(lengths or {})
        rng = random.Random(revision * 100 + players)

        def make(role: RecordRole) -> bytearray:
            # where-are-n gets a fixed length on revisions that do not define it
            length = lengths.get(role) or entry.sizes.length_for(role) or 0x60
            return bytearray(rng.getrandbits(8) for _ in range(length))

        main = make(RecordRole.MAIN)
        date.write(main, entry.offsets.last_saved)
        embed_all(self.table.hash_layouts(RecordRole.MAIN, len(main)), main)
        write_record(folder, RecordRole.MAIN, bytes(main), version, seed)

        include_wan = entry.sizes.where_are_n_length is not None if where_are_n is None else where_are_n
        names = player_names or [f"Player{i}" for i in range(players)]
        for i in range(players):
            pdir = folder / Player.folder_name(i)
            roles = [RecordRole.PERSONAL, RecordRole.PHOTO, RecordRole.POST_BOX, RecordRole.PROFILE]
            if include_wan:
                roles.append(RecordRole.WHERE_ARE_N)
            for role in roles:
                data = make(role)
                if role == RecordRole.PERSONAL:
                    ident = PERSONAL_ID_OFFSET
                    data[ident : ident + 4] = (0xAABBCCDD).to_bytes(4, "little")
                    data[ident + 4 : ident + 0x18] = _name_bytes(town)
                    data[ident + 0x1C : ident + 0x20] = (0x11223344 + i).to_bytes(4, "little")
                    data[ident + 0x20 : ident + 0x34] = _name_bytes(names[i])
                embed_all(self.table.hash_layouts(role, len(data)), data)
                write_record(pdir, role, bytes(data), version, seed)
        return folder


@pytest.fixture()
def save_factory(revisions: RevisionTable) -> SaveFactory:
    return SaveFactory(revisions)
