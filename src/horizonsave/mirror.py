from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Sequence, Union

from .errors import MirrorCopyError
from .utils.fs import copy_file

logger = logging.getLogger(__name__)


def relative_path(base_folder: Union[str, Path], full_path: Union[str, Path]) -> str:
    """Path of ``full_path`` relative to ``base_folder``, compared case-insensitively.

    A path that is not under ``base_folder`` falls back to its bare file name,
    so two such files with the same name land on the same destination.
    """
    base = os.path.abspath(os.fspath(base_folder))
    if not base.endswith((os.sep, "/")):
        base += os.sep
    full = os.path.abspath(os.fspath(full_path))
    if not full.casefold().startswith(base.casefold()):
        return os.path.basename(full)
    return full[len(base):]


def mirror_files(
    primary_folder: Union[str, Path],
    files: Sequence[Path],
    mirrors: Sequence[Path],
    *,
    atomic: bool = False,
) -> None:
    """Copy ``files`` from ``primary_folder`` into every mirror at the same relative path.

    Every file is attempted in every mirror even if an earlier copy fails;
    failures are collected per mirror and raised together as MirrorCopyError
    afterwards.
    """
    if not mirrors:
        return

    failures: Dict[Path, Dict[Path, Exception]] = {}
    for mirror in mirrors:
        copied = 0
        for source in files:
            destination = Path(mirror) / relative_path(primary_folder, source)
            try:
                copy_file(Path(source), destination, atomic=atomic)
                copied += 1
            except OSError as exc:
                logger.exception("Failed to mirror %s to %s", source, destination)
                failures.setdefault(Path(mirror), {})[destination] = exc
        logger.info("Mirrored %d of %d files to %s", copied, len(files), mirror)

    if failures:
        raise MirrorCopyError(failures)
