from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    """Create ``path`` and any missing parents; safe to repeat."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_bytes(path: Path, data: bytes, *, atomic: bool = False) -> None:
    """Overwrite ``path`` with ``data``, optionally through a temp file and rename."""
    if not atomic:
        path.write_bytes(data)
        return
    fd, tmp_name = tempfile.mkstemp(prefix=path.name, dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


def copy_file(source: Path, destination: Path, *, atomic: bool = False) -> None:
    """Copy ``source`` over ``destination``, creating parent folders as needed."""
    ensure_dir(destination.parent)
    if not atomic:
        shutil.copyfile(source, destination)
        return
    fd, tmp_name = tempfile.mkstemp(prefix=destination.name, dir=destination.parent)
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_name)
        os.replace(tmp_name, destination)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)
