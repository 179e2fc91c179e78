"""All save data stored on the device for one island.

A SaveAggregate owns the main record and every player's records loaded from
the primary folder, plus the list of mirror folders that receive copies of
the primary files after every save.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .folders import resolve_save_folders
from .hashing import HashRegion
from .main_save import MainSave
from .mirror import mirror_files
from .player import Player
from .record import EncryptedRecord, PersistMode
from .revisions import UNKNOWN_REVISION, RevisionTable, load_revisions
from .utils.fs import ensure_dir
from .utils.text import clean_file_name

logger = logging.getLogger(__name__)


class SaveAggregate:
    def __init__(self, folder: Union[str, Path], revisions: Optional[RevisionTable] = None) -> None:
        resolved = resolve_save_folders(folder)
        self.active_save_folder: Path = resolved.primary
        self.mirror_save_folders: Tuple[Path, ...] = resolved.mirrors
        self.revisions = revisions if revisions is not None else load_revisions()

        self.main = MainSave(self.active_save_folder, self.revisions)
        self.players: Tuple[Player, ...] = Player.read_many(self.active_save_folder, self.revisions)
        logger.info(
            "Loaded save from %s: %d players, %d mirrors",
            self.active_save_folder,
            len(self.players),
            len(self.mirror_save_folders),
        )

    def __str__(self) -> str:
        first = self.players[0]
        return f"{first.personal.town_name} - {first}"

    def records(self) -> Iterator[EncryptedRecord]:
        """Main record first, then every present record of every player."""
        yield self.main
        for player in self.players:
            yield from player

    # Persistence

    def save(self, seed: int, mode: PersistMode = PersistMode.PRESERVE) -> None:
        """Re-hash and encrypt every record with ``seed``, then mirror the written files.

        In PRESERVE mode files are overwritten one by one, so an interruption can
        leave the folder with a mix of old and new records.
        """
        for record in self.records():
            record.hash()
            record.save(seed, mode)
        logger.info("Saved %s with seed %#x", self.active_save_folder, seed)
        self._mirror_saved_files(mode)

    def _mirror_saved_files(self, mode: PersistMode) -> None:
        if not self.mirror_save_folders:
            return
        files: List[Path] = []
        for record in self.records():
            files.append(record.data_path)
            files.append(record.header_path)
        mirror_files(
            self.active_save_folder,
            files,
            self.mirror_save_folders,
            atomic=mode == PersistMode.ATOMIC,
        )

    # Integrity

    def invalid_hashes(self) -> List[HashRegion]:
        """Every invalid checksum region across all records.

        Regions don't say which record they came from; offsets are distinct
        enough to map back by hand.
        """
        regions: List[HashRegion] = []
        for record in self.records():
            regions.extend(record.invalid_hashes())
        return regions

    def validate_sizes(self) -> bool:
        index = self.main.info.get_known_revision_index()
        if index == UNKNOWN_REVISION:
            logger.warning("Unrecognized save revision: %s", self.main.info.signature)
            return False
        sizes = self.revisions.size_info(index)
        if len(self.main.data) != sizes.main_length:
            return False

        # Each player present in the save must have been migrated to this revision.
        for p in self.players:
            if len(p.personal.data) != sizes.personal_length:
                return False
            if len(p.photo.data) != sizes.photo_length:
                return False
            if len(p.post_box.data) != sizes.post_box_length:
                return False
            if len(p.profile.data) != sizes.profile_length:
                return False

            expected = sizes.where_are_n_length
            present = p.where_are_n
            if expected is None and present is None:
                continue
            if expected is None or present is None:
                return False
            if len(present.data) != expected:
                return False
        return True

    # Editing

    def change_identity(self, original: bytes, updated: bytes) -> int:
        """Replace ``original`` with ``updated`` in every record; returns the total replaced."""
        total = 0
        for record in self.records():
            total += record.replace_occurrences(original, updated)
        logger.info("Replaced %d identity occurrences", total)
        return total

    # Titles and backups

    @property
    def revision_name(self) -> Optional[str]:
        revision = self.main.info.get_known_revision()
        return revision.name if revision is not None else None

    def get_save_title(self, prefix: str) -> str:
        town_name = self.players[0].personal.town_name
        timestamp = self.main.last_saved.timestamp
        return f"{prefix} - {town_name} @ {timestamp}"

    def get_backup_folder_title(self) -> str:
        town_name = self.players[0].personal.town_name
        timestamp = self.main.last_saved.timestamp.replace(":", ".")
        return clean_file_name(f"{town_name} - {timestamp}")

    def backup(self, root: Union[str, Path]) -> Path:
        """Copy the primary folder into ``root/<backup folder title>``.

        An existing backup with the same title is left as is.
        """
        destination = Path(root) / self.get_backup_folder_title()
        if destination.exists():
            logger.info("Backup already exists at %s", destination)
            return destination
        ensure_dir(Path(root))
        shutil.copytree(self.active_save_folder, destination)
        logger.info("Backed up %s to %s", self.active_save_folder, destination)
        return destination
