"""Abstract base class for the byte stream under the protocol engine.

The driver only needs blocking reads with a timeout, writes, input flushing
and close. Implementations can be a serial port, a socket bridge or an
in-memory fake for tests.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class ByteStream(ABC):
    """Abstract blocking byte stream.

    All failures must be raised as StreamError so callers do not depend on
    the backend's exception types.
    """

    @abstractmethod
    def open(self) -> None:
        """Open the stream. Safe to call when already open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the stream.

        Should be safe to call multiple times.
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the stream can be read and written."""
        pass

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Read up to `size` bytes.

        Blocks up to the stream's read timeout and may return fewer bytes,
        including none, if the timeout expires.
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all of `data`."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """Discard any input received but not yet read."""
        pass

    def __enter__(self) -> ByteStream:
        """Context manager support - open on enter."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager support - close on exit."""
        self.close()
