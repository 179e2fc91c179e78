"""Pick the authoritative save folder and its mirrors.

Devices keep several save slots/backups side by side. When pointed at one
slot that slot is always primary; when pointed at a container, the slot whose
main.dat was written last wins.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from .errors import SaveNotFoundError
from .record import EncryptedRecord, data_path_for
from .revisions import RecordRole

logger = logging.getLogger(__name__)

MAIN = RecordRole.MAIN.value


@dataclass(frozen=True)
class ResolvedFolders:
    primary: Path
    mirrors: Tuple[Path, ...]


def _absolute(path: Union[str, Path]) -> Path:
    return Path(os.path.abspath(os.fspath(path)))


def _same_folder(left: Path, right: Path) -> bool:
    a = os.fspath(left).rstrip("\\/")
    b = os.fspath(right).rstrip("\\/")
    return a.casefold() == b.casefold()


def _subdirectories(folder: Path) -> List[Path]:
    # Directory-listing order, as returned by the OS
    with os.scandir(folder) as it:
        return [_absolute(entry.path) for entry in it if entry.is_dir()]


def resolve_save_folders(folder: Union[str, Path]) -> ResolvedFolders:
    normalized = _absolute(folder)

    if EncryptedRecord.exists(normalized, MAIN):
        parent = normalized.parent
        mirrors: Tuple[Path, ...] = ()
        if parent != normalized:
            mirrors = tuple(
                d
                for d in _subdirectories(parent)
                if not _same_folder(d, normalized) and EncryptedRecord.exists(d, MAIN)
            )
        logger.info("Using %s as primary save folder (%d sibling mirrors)", normalized, len(mirrors))
        return ResolvedFolders(normalized, mirrors)

    probe = data_path_for(normalized, MAIN)
    if not normalized.is_dir():
        raise SaveNotFoundError("No save folders containing main.dat were found", probe)

    candidates = [d for d in _subdirectories(normalized) if EncryptedRecord.exists(d, MAIN)]
    # Newest main.dat first; ties keep listing order
    candidates.sort(key=lambda d: data_path_for(d, MAIN).stat().st_mtime_ns, reverse=True)

    if not candidates:
        raise SaveNotFoundError("No save folders containing main.dat were found", probe)

    primary, mirrors = candidates[0], tuple(candidates[1:])
    logger.info("Resolved %s as newest save folder under %s (%d mirrors)", primary, normalized, len(mirrors))
    return ResolvedFolders(primary, mirrors)
