from __future__ import annotations

from pathlib import Path
from typing import Dict


class SaveError(Exception):
    """Base exception for save load/persist errors."""


class SaveNotFoundError(SaveError):
    """Raised when no probed folder contains a main save pair."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message} ({path})")
        self.path = path


class SaveFormatError(SaveError):
    """Raised when a header or data file does not have the expected framing."""


class UnknownRevisionError(SaveError):
    """Raised when a revision-dependent value is requested for an unrecognized save."""


class RevisionTableError(SaveError, ValueError):
    """Raised when the revision table resource fails validation."""


class MirrorCopyError(SaveError):
    """Raised after mirroring when one or more mirror files could not be written.

    ``failures`` maps each affected mirror folder to its failed destinations
    and the error raised for each.
    """

    def __init__(self, failures: Dict[Path, Dict[Path, Exception]]) -> None:
        names = ", ".join(str(p) for p in failures)
        super().__init__(f"Failed to mirror save files to: {names}")
        self.failures = failures
