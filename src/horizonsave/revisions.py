"""Known save revisions and their expected record layouts.

The table is read once per process from the bundled ``revisions.yaml`` (or a
user supplied file) and is immutable afterwards.
"""
from __future__ import annotations

import enum
import logging
import struct
from functools import lru_cache
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import RevisionTableError
from .hashing import HashLayout

logger = logging.getLogger(__name__)

UNKNOWN_REVISION = -1

_SIGNATURE = struct.Struct("<IIHHHH")


class RecordRole(str, enum.Enum):
    """Logical record kinds; the value is the file stem on disk."""

    MAIN = "main"
    PERSONAL = "personal"
    PHOTO = "photo_studio_island"
    POST_BOX = "postbox"
    PROFILE = "profile"
    WHERE_ARE_N = "wherearen"


class HeaderSignature(BaseModel):
    """The first 16 bytes of a header file, identifying the game version."""

    model_config = ConfigDict(frozen=True)

    major: int
    minor: int
    unk1: int = 0
    header_revision: int = 0
    unk2: int = 0
    save_revision: int = 0

    @classmethod
    def from_bytes(cls, header: bytes) -> "HeaderSignature":
        major, minor, unk1, header_revision, unk2, save_revision = _SIGNATURE.unpack_from(header, 0)
        return cls(
            major=major,
            minor=minor,
            unk1=unk1,
            header_revision=header_revision,
            unk2=unk2,
            save_revision=save_revision,
        )

    def to_bytes(self) -> bytes:
        return _SIGNATURE.pack(
            self.major, self.minor, self.unk1, self.header_revision, self.unk2, self.save_revision
        )


class SizeInfo(BaseModel):
    """Expected decrypted length of every record for one revision."""

    model_config = ConfigDict(frozen=True)

    main_length: int = Field(..., gt=0)
    personal_length: int = Field(..., gt=0)
    photo_length: int = Field(..., gt=0)
    post_box_length: int = Field(..., gt=0)
    profile_length: int = Field(..., gt=0)
    where_are_n_length: Optional[int] = Field(default=None, gt=0)

    def length_for(self, role: RecordRole) -> Optional[int]:
        return {
            RecordRole.MAIN: self.main_length,
            RecordRole.PERSONAL: self.personal_length,
            RecordRole.PHOTO: self.photo_length,
            RecordRole.POST_BOX: self.post_box_length,
            RecordRole.PROFILE: self.profile_length,
            RecordRole.WHERE_ARE_N: self.where_are_n_length,
        }[role]


class RevisionOffsets(BaseModel):
    model_config = ConfigDict(frozen=True)

    last_saved: int = Field(..., ge=0, description="Offset of the save date inside main.dat")


class Revision(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    header: HeaderSignature
    sizes: SizeInfo
    offsets: RevisionOffsets
    hashes: Dict[RecordRole, Tuple[HashLayout, ...]] = Field(default_factory=dict)

    @field_validator("hashes", mode="before")
    @classmethod
    def accept_pairs(cls, v: Any) -> Any:
        # YAML lists regions as [hash_offset, size] pairs
        if not isinstance(v, dict):
            return v
        out = {}
        for role, regions in v.items():
            out[role] = [
                {"hash_offset": r[0], "size": r[1]} if isinstance(r, (list, tuple)) else r
                for r in (regions or [])
            ]
        return out


class RevisionTable:
    """Immutable, index-addressed sequence of known revisions."""

    def __init__(self, revisions: List[Revision]) -> None:
        self._revisions: Tuple[Revision, ...] = tuple(revisions)

    def __len__(self) -> int:
        return len(self._revisions)

    def __iter__(self) -> Iterator[Revision]:
        return iter(self._revisions)

    def __getitem__(self, index: int) -> Revision:
        if index < 0:
            raise IndexError(f"Revision index must be non-negative, got {index}")
        return self._revisions[index]

    def size_info(self, index: int) -> SizeInfo:
        return self[index].sizes

    def find(self, signature: HeaderSignature) -> int:
        """Return the index of the revision matching ``signature``, or UNKNOWN_REVISION."""
        for index, revision in enumerate(self._revisions):
            if revision.header == signature:
                return index
        return UNKNOWN_REVISION

    def hash_layouts(self, role: RecordRole, length: int) -> Tuple[HashLayout, ...]:
        """Checksum layout for a record, picked by its decrypted length.

        Returns an empty tuple when no revision defines ``role`` with that length;
        such a record cannot be checked, which is logged as a warning.
        """
        for revision in self._revisions:
            if revision.sizes.length_for(role) == length:
                return revision.hashes.get(role, ())
        logger.warning("No revision defines %s with length %#x; its checksums are not checked", role.value, length)
        return ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RevisionTable":
        raw = (data or {}).get("revisions")
        if not isinstance(raw, list):
            raise RevisionTableError("Revision table must contain a 'revisions' list")
        try:
            revisions = [Revision.model_validate(item) for item in raw]
        except ValidationError as e:
            raise RevisionTableError(f"Invalid revision table: {e}") from e
        return cls(revisions)

    @classmethod
    def from_yaml(cls, text: str) -> "RevisionTable":
        return cls.from_dict(yaml.safe_load(text) or {})


@lru_cache(maxsize=None)
def load_revisions(path: Optional[Path] = None) -> RevisionTable:
    """Load the revision table once per process.

    If path is None, loads the bundled resource at horizonsave/data/revisions.yaml.
    """
    if path is None:
        text = resource_files("horizonsave.data").joinpath("revisions.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded bundled revision table")
    else:
        text = Path(path).read_text(encoding="utf-8")
        logger.debug("Loaded revision table from path: %s", path)
    table = RevisionTable.from_yaml(text)
    logger.info("Known revisions: %s", ", ".join(r.name for r in table))
    return table
