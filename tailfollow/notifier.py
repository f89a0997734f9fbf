"""NotificationCoordinator: merges watchdog events, watch failures and shutdown
into a single debounced wake signal, with timer polling as the fallback."""

import os
import logging
import threading

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from tailfollow.config import Config
from tailfollow.errors import FileClosedError, WatchError

logger = logging.getLogger(__name__)

_EMPTY = object()


class PathEventHandler(FileSystemEventHandler):
    """Forwards events touching any watched path to the coordinator as wakes."""

    def __init__(self, coordinator: "NotificationCoordinator"):
        super().__init__()
        self._coordinator = coordinator

    def on_any_event(self, event):
        if event.is_directory:
            return
        paths = {os.fsdecode(event.src_path)}
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.add(os.fsdecode(dest))
        if self._coordinator.is_watched(paths):
            logger.debug("%s event for %s", event.event_type, event.src_path)
            self._coordinator.wake()


class NotificationCoordinator:
    """Single-slot wake signal shared by one tailing file and its observer.

    Until add() succeeds, wait() is a plain timer of config.poll_interval.
    Once a watchdog observer runs, events wake waiters immediately and the
    timer stretches to config.watch_poll_interval as a safety net.
    """

    def __init__(self, config: Config | None = None):
        self._config = config or Config()
        self._cond = threading.Condition()
        self._pending = _EMPTY
        self._closed = False
        # Serializes observer setup and teardown. Never held together with
        # _cond while calling into watchdog.
        self._watch_lock = threading.Lock()
        self._observer = None
        self._handler = PathEventHandler(self)
        self._paths: frozenset[str] = frozenset()
        self._dirs: set[str] = set()

    @property
    def watching(self) -> bool:
        return self._observer is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def is_watched(self, paths) -> bool:
        # Called from the observer thread while watchdog holds its own lock,
        # so this reads the current frozenset without taking _cond.
        watched = self._paths
        return any(p in watched for p in paths)

    def add(self, path: str):
        """Register *path* for change notifications.

        The observer is created on the first call and reused afterwards. On
        failure WatchError is raised and the coordinator keeps polling.
        """
        abs_path = os.path.abspath(path)
        watch_dir = os.path.dirname(abs_path)

        with self._watch_lock:
            if self._closed:
                raise FileClosedError()

            observer = self._observer
            if observer is None:
                observer = Observer()
                try:
                    observer.schedule(self._handler, watch_dir, recursive=False)
                    observer.start()
                except OSError as e:
                    raise WatchError(f"Cannot create watch for {abs_path}: {e}") from e
                logger.info("Started file observer for %s", abs_path)
            elif watch_dir not in self._dirs:
                try:
                    observer.schedule(self._handler, watch_dir, recursive=False)
                except OSError as e:
                    raise WatchError(f"Cannot watch {watch_dir}: {e}") from e

            self._dirs.add(watch_dir)
            self._paths = self._paths | {abs_path}
            with self._cond:
                self._observer = observer
        logger.debug("Watching %s (%d paths)", abs_path, len(self._paths))

    def wake(self, error: Exception | None = None):
        """Post a wake, merging into any pending one.

        A pending error is never replaced. A new error replaces a pending
        plain wake. A plain wake onto an occupied slot is dropped.
        """
        with self._cond:
            if self._pending is _EMPTY:
                self._pending = error
            elif self._pending is None and error is not None:
                self._pending = error
            else:
                return
            self._cond.notify()

    def wait(self, timeout: float | None = None):
        """Block until a wake, the poll interval, or shutdown.

        Returns None on a plain wake or timeout. Raises the pending WatchError
        if one was posted, and FileClosedError once the coordinator is closed.
        """
        with self._cond:
            if timeout is None:
                timeout = self._poll_interval()
            self._cond.wait_for(self._ready, timeout)

            if self._closed:
                raise FileClosedError()

            if self._pending is not _EMPTY:
                value, self._pending = self._pending, _EMPTY
                if value is not None:
                    raise value
                return None

            if self._observer is not None and not self._observer_alive():
                raise WatchError("File observer stopped unexpectedly")
            return None

    def close(self):
        """Stop the observer and release every current and future waiter.

        Calling close more than once is a no-op.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()

        with self._watch_lock:
            observer, self._observer = self._observer, None

        if observer is not None:
            observer.stop()
            observer.join(timeout=self._config.observer_join_timeout)
            logger.info("Stopped file observer (%d paths)", len(self._paths))

    def _ready(self) -> bool:
        return self._closed or self._pending is not _EMPTY

    def _poll_interval(self) -> float:
        if self._observer is not None:
            return self._config.watch_poll_interval
        return self._config.poll_interval

    def _observer_alive(self) -> bool:
        if not self._observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in tuple(self._observer.emitters))
