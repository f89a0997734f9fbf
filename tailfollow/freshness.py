"""File identity snapshots and the rotation (freshness) check."""

import os
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileSnapshot:
    device: int
    inode: int
    size: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileSnapshot":
        return cls(device=st.st_dev, inode=st.st_ino, size=st.st_size)


def same_identity(a: FileSnapshot, b: FileSnapshot) -> bool:
    """True if both snapshots describe the same file (device and inode match)."""
    return a.device == b.device and a.inode == b.inode


def is_fresh(path: str, snapshot: FileSnapshot | None, position: int) -> bool:
    """Decide whether the file at *path* is still the stream opened as *snapshot*.

    Ambiguous outcomes are treated as fresh. A live size of zero never counts
    as rotation: a writer that truncates and rewrites, or a replacement file
    that has not been written yet, should be waited for rather than reported.
    """
    if snapshot is None:
        return True

    try:
        live = FileSnapshot.from_stat(os.stat(path))
    except OSError as e:
        logger.debug("Re-stat of %s failed, assuming fresh: %s", path, e)
        return True

    if live.size < position and live.size > 0:
        logger.info("File truncated: %s (size %d < position %d)", path, live.size, position)
        return False

    if not same_identity(live, snapshot) and live.size > 0:
        logger.info("File replaced: %s (inode %d -> %d)", path, snapshot.inode, live.inode)
        return False

    return True
