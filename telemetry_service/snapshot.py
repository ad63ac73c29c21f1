"""Single-slot holder for the latest published snapshot."""

import threading
from typing import Optional

from telemetry_service.models import TelemetrySnapshot


class LatestSnapshot:
    """
    Atomically replaceable cell.

    Only the broadcast scheduler writes; connection handlers read. Snapshots
    are frozen, so a reader always holds a complete one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[TelemetrySnapshot] = None

    def get(self) -> Optional[TelemetrySnapshot]:
        with self._lock:
            return self._snapshot

    def replace(self, snapshot: TelemetrySnapshot) -> Optional[TelemetrySnapshot]:
        """Install snapshot and return the one it superseded."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        return previous
