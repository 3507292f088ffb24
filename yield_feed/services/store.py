from __future__ import annotations

import logging
import threading

from yield_feed.models import EMPTY_SNAPSHOT, Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds the latest published snapshot.

    Snapshots are immutable, so publishing is a single reference swap. Readers
    take the reference once and keep using it; they never wait on a writer.
    The lock only orders concurrent writers.
    """

    def __init__(self, initial: Snapshot = EMPTY_SNAPSHOT):
        self._snapshot = initial
        self._write_lock = threading.Lock()

    def current(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> Snapshot:
        """Publish ``snapshot`` and return the one it replaced."""
        with self._write_lock:
            previous = self._snapshot
            self._snapshot = snapshot
        logger.debug(f"Published snapshot with {len(snapshot)} records (was {len(previous)})")
        return previous
