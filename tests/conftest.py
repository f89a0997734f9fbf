import threading
import time

import pytest

from tailfollow.config import Config


class BackgroundRead(threading.Thread):
    """Runs one TailingFile.read() on a daemon thread and records the outcome."""

    def __init__(self, tf, size: int = 1024):
        super().__init__(daemon=True)
        self._tf = tf
        self._size = size
        self.result = None
        self.error = None
        self.elapsed = None

    def run(self):
        start = time.monotonic()
        try:
            self.result = self._tf.read(self._size)
        except Exception as e:
            self.error = e
        finally:
            self.elapsed = time.monotonic() - start


@pytest.fixture
def fast_config():
    return Config(poll_interval=0.05, watch_poll_interval=30.0, observer_join_timeout=2.0)


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_bytes(b"")
    return path


@pytest.fixture
def start_reader():
    readers = []

    def _start(tf, size: int = 1024) -> BackgroundRead:
        reader = BackgroundRead(tf, size)
        reader.start()
        readers.append(reader)
        return reader

    yield _start

    for reader in readers:
        reader._tf.close()
        reader.join(timeout=2)


@pytest.fixture
def append():
    def _append(path, data: bytes):
        with open(path, "ab") as f:
            f.write(data)
            f.flush()

    return _append
