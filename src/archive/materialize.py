"""Write archive entries to disk under a destination directory."""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Union

from constants import Constants
from common.errors import PathTraversalError
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import ArchiveEntry, EntryKind

logger = logging.getLogger(__name__)


def safe_target_path(destination: Path, entry_path: str) -> Path:
    """Resolve ``entry_path`` under ``destination`` or refuse to.

    ``destination`` must already be resolved. Absolute entry paths and ``..``
    escapes raise PathTraversalError.
    """
    if os.path.isabs(entry_path) or entry_path.startswith(("/", "\\")):
        raise PathTraversalError(entry_path, str(destination))
    target = (destination / entry_path).resolve()
    if target != destination and destination not in target.parents:
        raise PathTraversalError(entry_path, str(destination))
    return target


def materialize(entries: Iterable[ArchiveEntry], destination: Union[str, Path]) -> int:
    """Write every entry below ``destination``, one at a time.

    Directories are created idempotently; files are overwritten and their
    stream copied to completion before the next entry is pulled. The
    destination itself is only created once the first entry arrives, so a
    source failing up front (for example a checksum mismatch) leaves nothing
    on disk.

    Returns:
        int: Number of files written.

    Raises:
        PathTraversalError: An entry would land outside ``destination``.
    """
    root = Path(destination).resolve()
    written = 0
    created = False
    for entry in entries:
        if not created:
            root.mkdir(parents=True, exist_ok=True)
            created = True
        target = safe_target_path(root, entry.path)
        if entry.kind == EntryKind.DIRECTORY:
            target.mkdir(parents=True, exist_ok=True)
            continue

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as fh:
            if entry.stream is not None:
                shutil.copyfileobj(entry.stream, fh, Constants.COPY_CHUNK_SIZE)
        written += 1
        if is_debug_enabled(logger):
            logger.debug(
                "Wrote file",
                extra=extra_context(
                    event="write",
                    component="materialize",
                    target=str(target),
                    size=entry.size,
                ),
            )
    if not created:
        root.mkdir(parents=True, exist_ok=True)
    logger.info("Wrote %d files to %s", written, root)
    return written
