"""Swap sys.stdout / sys.stderr for a pipe while a test runs.

Test scaffolding only. The swap is process-wide and not reentrant: never
capture the same stream twice at once.
"""

import os
import sys
import threading


class Capture:
    """Everything written to one sys stream, from creation until release()."""

    def __init__(self, name: str):
        self.name = name
        self._original = getattr(sys, name)
        read_fd, write_fd = os.pipe()
        self._writer = os.fdopen(write_fd, "w", encoding="utf-8", errors="replace")
        self._chunks: list[str] = []
        # Drain in the background so a full pipe never blocks the writer.
        self._reader = threading.Thread(target=self._drain, args=(read_fd,), daemon=True)
        self._reader.start()
        self._released = False
        setattr(sys, name, self._writer)

    def _drain(self, read_fd: int) -> None:
        with os.fdopen(read_fd, "rb") as pipe:
            data = pipe.read()
        self._chunks.append(data.decode("utf-8", errors="replace"))

    def release(self) -> None:
        """Put the original stream back. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        setattr(sys, self.name, self._original)
        self._writer.close()

    def output(self) -> str:
        """Release, wait for the drain to finish, return the captured text."""
        self.release()
        self._reader.join()
        return "".join(self._chunks)

    def __enter__(self) -> "Capture":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


def capture_stdout() -> Capture:
    return Capture("stdout")


def capture_stderr() -> Capture:
    return Capture("stderr")
