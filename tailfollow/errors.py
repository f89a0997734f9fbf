"""Exception types raised by tailing files and their notification coordinator."""


class TailError(Exception):
    """Base class for tailfollow errors."""


class FileClosedError(TailError, ValueError):
    """Operation attempted on, or interrupted by, a closed tailing file."""

    def __init__(self, message: str = "I/O operation on closed tailing file"):
        super().__init__(message)


class WatchError(TailError):
    """The file change notification facility failed or could not be created."""
