"""
File-descriptor output sink with serialized writes.

Responsibilities:
- Own the lock and the first-write flag for one output descriptor
- Decide, under the lock, whether a separator precedes the record
- Write each record with one complete, non-interleaved write sequence

Non-responsibilities:
- No encoding, no framing (frames arrive fully built)
- No buffering, no retries beyond EINTR / EAGAIN
- No cross-process locking: other writers on the same descriptor that do
  not go through this sink can still interleave with it

Concurrency:
    Everything outside write_framed() runs unlocked on the caller's thread.
    Inside write_framed() the lock covers exactly "consume the first-write
    flag + write the bytes", so frames land in lock-acquisition order.
"""

from __future__ import annotations

import os
import threading
from typing import Callable, Optional

from constants import STDOUT_FD


# ------------------------------------------------------------------
# Raw write syscall (patchable in tests)
# ------------------------------------------------------------------

_write: Callable[[int, memoryview], int] = os.write


def write_all(fd: int, data: bytes) -> bool:
    """
    Blocking write of every byte of `data` to `fd`.

    Partial writes are continued; InterruptedError and BlockingIOError are
    retried. Any other OSError stops the write.

    Returns:
        True if all bytes were written, False otherwise. Never raises.
    """
    view = memoryview(data)
    while view:
        try:
            written = _write(fd, view)
        except (InterruptedError, BlockingIOError):
            continue
        except OSError:
            return False
        view = view[written:]
    return True


class OutputSink:
    """
    A descriptor plus the synchronization state bound to it.

    Two loggers sharing one OutputSink share its lock and its first-write
    flag, so their records never interleave and only the very first
    record on the descriptor goes without a separator. Independent sinks
    never contend.
    """

    def __init__(self, fd: int, *, owns_fd: bool = False) -> None:
        self._fd = fd
        self._owns_fd = owns_fd
        self._lock = threading.Lock()
        self._is_first_write = True
        self._closed = False

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @staticmethod
    def stdout() -> OutputSink:
        """The process-wide sink for standard output."""
        return sink_for_fd(STDOUT_FD)

    @staticmethod
    def open_file(path: str) -> OutputSink:
        """
        Open (append, create) a file and return a sink that owns it.

        Raises:
            OSError if the file cannot be opened.
        """
        fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        return OutputSink(fd, owns_fd=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def fd(self) -> int:
        return self._fd

    def write_framed(self, framed: bytes, *, separator: bytes) -> bool:
        """
        Write one frame, preceded by `separator` unless it is the first.

        Returns:
            True on success, False if the record was dropped (including
            every write after close()). Never raises.
        """
        with self._lock:
            if self._closed:
                return False

            if self._is_first_write:
                self._is_first_write = False
                data = framed
            else:
                data = separator + framed

            if not data:
                return True

            return write_all(self._fd, data)

    def close(self) -> None:
        """
        Close the descriptor if this sink opened it. Never raises.

        After that every write is dropped, so records never reach whatever
        file the process opens next under the same descriptor number.
        Sinks on borrowed descriptors (stdout, sink_for_fd) are unaffected.
        """
        with self._lock:
            if not self._owns_fd:
                return
            self._closed = True
            try:
                os.close(self._fd)
            except OSError:
                pass
            self._owns_fd = False


# -----------------------------------------------------------------------------
# Shared sinks, one per descriptor
# -----------------------------------------------------------------------------

_registry_lock = threading.Lock()
_shared_sinks: dict[int, OutputSink] = {}


def sink_for_fd(fd: int) -> OutputSink:
    """
    Return the process-wide OutputSink for `fd`, creating it on first use.
    """
    with _registry_lock:
        sink: Optional[OutputSink] = _shared_sinks.get(fd)
        if sink is None:
            sink = OutputSink(fd)
            _shared_sinks[fd] = sink
        return sink
