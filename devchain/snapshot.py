"""
Snapshot manager: point-in-time copies of the whole ledger.

Restoring a snapshot consumes it, together with every snapshot taken after it.
"""
import logging
from typing import Any, Callable, Dict, Tuple

from devchain.errors import UnknownSnapshot

logger = logging.getLogger(__name__)


class SnapshotManager:
    def __init__(self, ledger):
        self.ledger = ledger
        self._snapshots: Dict[str, dict] = {}   # insertion order == capture order
        self._counter = 0
        self._fixtures: Dict[Callable, Tuple[str, Any]] = {}

    def capture(self) -> str:
        """Copy the current ledger state and return its snapshot id."""
        with self.ledger._lock:
            self._counter += 1
            snapshot_id = hex(self._counter)
            self._snapshots[snapshot_id] = self.ledger.export_state()
            logger.info("Snapshot %s taken at block %d", snapshot_id, self.ledger.block_number)
            return snapshot_id

    def restore(self, snapshot_id: str):
        with self.ledger._lock:
            if snapshot_id not in self._snapshots:
                raise UnknownSnapshot(f"Unknown snapshot: {snapshot_id}")

            ids = list(self._snapshots)
            discarded = ids[ids.index(snapshot_id):]
            saved = self._snapshots[snapshot_id]
            for sid in discarded:
                del self._snapshots[sid]

            self.ledger.import_state(saved)
            logger.info("Reverted to snapshot %s (block %d)", snapshot_id, self.ledger.block_number)

    def has_snapshot(self, snapshot_id: str) -> bool:
        return snapshot_id in self._snapshots

    def clear(self):
        self._snapshots.clear()
        self._fixtures.clear()

    def load_fixture(self, fixture: Callable):
        """
        Run `fixture(ledger)` once and snapshot the result.

        Later calls with the same fixture revert to that snapshot instead of
        running it again, re-capture, and return the first call's result.
        """
        cached = self._fixtures.get(fixture)
        if cached is None:
            result = fixture(self.ledger)
            self._fixtures[fixture] = (self.capture(), result)
            return result

        snapshot_id, result = cached
        try:
            self.restore(snapshot_id)
        except UnknownSnapshot:
            # A revert to an earlier snapshot consumed the fixture's snapshot
            del self._fixtures[fixture]
            raise UnknownSnapshot(
                f"Snapshot for fixture {getattr(fixture, '__name__', fixture)!r} is no longer valid"
            ) from None
        self._fixtures[fixture] = (self.capture(), result)
        return result
