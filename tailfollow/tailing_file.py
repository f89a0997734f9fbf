"""TailingFile: a read-only file whose reads block at end of stream.

Reading waits for more data to be appended instead of reporting end of file.
If the file is truncated or replaced at its path (log rotation), the read
returns 0 bytes so the caller can reopen. close() may be called from another
thread and unblocks a read that is waiting for data.
"""

import os
import logging
import threading

from tailfollow.config import Config, load_config
from tailfollow.errors import FileClosedError, WatchError
from tailfollow.freshness import FileSnapshot, is_fresh
from tailfollow.notifier import NotificationCoordinator

logger = logging.getLogger(__name__)


def open_file(path: str, config: Config | None = None) -> "TailingFile":
    """Open *path* for tailing and record its identity snapshot.

    OS errors from opening or stating the file propagate; the handle is
    released first if only the stat failed. Without *config*, settings come
    from load_config() (env vars and $TAIL_CONFIG).
    """
    if config is None:
        config = load_config()
    fh = open(path, "rb", buffering=0)
    try:
        snapshot = FileSnapshot.from_stat(os.fstat(fh.fileno()))
    except OSError:
        fh.close()
        raise

    logger.debug("Opened %s (inode=%d, size=%d)", path, snapshot.inode, snapshot.size)
    return TailingFile(path, fh, snapshot, config)


class TailingFile:
    """Blocking, rotation-aware reader over one open file handle.

    The lock serializes every access to the handle (read, seek, close) but is
    never held while waiting for new data, so close() can always proceed and
    wake a blocked reader.
    """

    def __init__(self, path: str, fh, snapshot: FileSnapshot | None, config: Config | None = None):
        self._path = path
        self._file = fh
        self._config = config or Config()
        self._lock = threading.Lock()
        self._pos = 0
        self._closed = False
        self._rotated = False
        self._notifier = NotificationCoordinator(self._config)
        self.snapshot = snapshot

    @property
    def name(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def rotated(self) -> bool:
        """True once a read has detected truncation or replacement."""
        return self._rotated

    @property
    def watching(self) -> bool:
        return self._notifier.watching

    def readinto(self, buffer) -> int:
        """Read into *buffer*, blocking at end of stream until data arrives.

        Returns the number of bytes read. Returns 0 only when the file was
        rotated, after draining anything left in the old file. Raises
        FileClosedError if the file is closed, including while blocked, and
        WatchError if the notification facility fails.
        """
        if len(memoryview(buffer)) == 0:
            return 0

        fresh = True
        while True:
            n = self._raw_readinto(buffer)
            if n or not fresh:
                return n

            fresh = is_fresh(self._path, self.snapshot, self._pos)
            if fresh:
                self._notifier.wait()
            else:
                self._rotated = True

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes (config.read_size if negative). b"" means rotated."""
        if size < 0:
            size = self._config.read_size
        buf = bytearray(size)
        n = self.readinto(buf)
        return bytes(buf[:n])

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self._lock:
            self._check_open()
            pos = self._file.seek(offset, whence)
            self._pos = pos
        return pos

    def tell(self) -> int:
        return self._pos

    def watch(self):
        """Request change notifications for this file's path.

        Best effort: on WatchError tailing continues by polling.
        """
        if self._closed:
            raise FileClosedError()
        try:
            self._notifier.add(self._path)
        except WatchError as e:
            logger.warning("Watch unavailable for %s, polling instead: %s", self._path, e)
            raise

    def close(self):
        """Close the handle and wake any blocked reader. Safe to call twice."""
        try:
            with self._lock:
                if self._closed:
                    return
                self._closed = True
                self._file.close()
        finally:
            self._notifier.close()
        logger.debug("Closed %s at position %d", self._path, self._pos)

    def _raw_readinto(self, buffer) -> int:
        with self._lock:
            self._check_open()
            n = self._file.readinto(buffer)
            self._pos += n
        return n

    def _check_open(self):
        if self._closed:
            raise FileClosedError()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else f"pos={self._pos}"
        return f"<TailingFile {self._path!r} {state}>"
