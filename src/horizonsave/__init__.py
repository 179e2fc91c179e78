"""
Save-folder manager for a console title whose save is split across
encrypted header/data file pairs.

This package provides:
- Resolution of the authoritative save folder and its mirror folders
- A SaveAggregate loading the main record and every player's records
- Size/revision validation and checksum (hash region) checks
- Identity byte-pattern patching across all records
- Re-keyed persistence with mirroring to backup folders
"""
from .aggregate import SaveAggregate
from .errors import (
    MirrorCopyError,
    RevisionTableError,
    SaveError,
    SaveFormatError,
    SaveNotFoundError,
    UnknownRevisionError,
)
from .folders import ResolvedFolders, resolve_save_folders
from .hashing import HashLayout, HashRegion
from .main_save import MainSave, SaveDate
from .player import PersonalRecord, Player
from .record import EncryptedRecord, PersistMode
from .revisions import RecordRole, Revision, RevisionTable, SizeInfo, load_revisions

__version__ = "0.1.0"

__all__ = [
    "SaveAggregate",
    "MirrorCopyError",
    "RevisionTableError",
    "SaveError",
    "SaveFormatError",
    "SaveNotFoundError",
    "UnknownRevisionError",
    "ResolvedFolders",
    "resolve_save_folders",
    "HashLayout",
    "HashRegion",
    "MainSave",
    "SaveDate",
    "PersonalRecord",
    "Player",
    "EncryptedRecord",
    "PersistMode",
    "RecordRole",
    "Revision",
    "RevisionTable",
    "SizeInfo",
    "load_revisions",
]
