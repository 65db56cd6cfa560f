"""Single-slot holder for the last successfully parsed status record."""

from __future__ import annotations

import threading

from .protocol import StatusRecord


class StatusStore:
    """Thread-safe slot holding the most recent :class:`StatusRecord`.

    Written only by the session's read activity; read by any number of
    sinks.  Holds ``None`` until the first record arrives and is never
    cleared afterwards, even when the connection closes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._record: StatusRecord | None = None
        self._updates = 0

    def get(self) -> StatusRecord | None:
        """Return the current record (``None`` before the first update)."""
        with self._lock:
            return self._record

    def update(self, record: StatusRecord) -> None:
        """Replace the stored record with *record*."""
        with self._lock:
            self._record = record
            self._updates += 1

    @property
    def update_count(self) -> int:
        """Number of times :meth:`update` has been called."""
        with self._lock:
            return self._updates
