"""Tracks chunk writes in progress per logical filename."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Set


class UploadRegistry:
    """
    Thread-safe counter of in-progress chunk writes keyed by logical filename.

    The merge sweep consults this registry so that it never removes a chunk
    artifact whose upload is still being streamed to disk.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._lock = threading.Lock()
        self._active: Dict[str, int] = {}

    @contextmanager
    def track(self, filename: str) -> Iterator[None]:
        """
        Mark filename as having a chunk write in progress for the block's duration.

        Args:
            filename: Logical filename being uploaded
        """
        with self._lock:
            self._active[filename] = self._active.get(filename, 0) + 1
        try:
            yield
        finally:
            with self._lock:
                remaining = self._active.get(filename, 0) - 1
                if remaining > 0:
                    self._active[filename] = remaining
                else:
                    self._active.pop(filename, None)

    def is_active(self, filename: str) -> bool:
        """Return True if any chunk of filename is currently being written."""
        with self._lock:
            return filename in self._active

    def active_files(self) -> Set[str]:
        """Return a snapshot of filenames with writes in progress."""
        with self._lock:
            return set(self._active)
