"""Per-document linear undo/redo over row snapshots."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .constants import HISTORY_CAPACITY

_LOG = logging.getLogger("cuesheet_tool.history")


class HistoryManager:
    """Snapshot stack with a single cursor.

    `record()` is called after every committed change. `undo()`/`redo()` only
    move the cursor and hand back the snapshot to restore; the restore itself
    flows back through `record()`, which swallows it via the suppress flag.
    """

    def __init__(
        self,
        snapshots: Sequence[tuple] = (),
        index: int = -1,
        capacity: int = HISTORY_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be >= 1")
        self._capacity = int(capacity)
        self._snapshots: List[tuple] = [tuple(s) for s in snapshots][-self._capacity:]
        dropped = len(snapshots) - len(self._snapshots)
        idx = int(index) - dropped
        if self._snapshots:
            idx = max(0, min(idx, len(self._snapshots) - 1))
        else:
            idx = -1
        self._index = idx
        self._suppress_next = False

    @classmethod
    def from_state(cls, snapshots: Sequence[tuple], index: int, capacity: int = HISTORY_CAPACITY) -> "HistoryManager":
        return cls(snapshots, index, capacity)

    def state(self) -> tuple[list, int]:
        """(snapshots, index) for parking with a document. The list is a fresh copy."""
        return list(self._snapshots), self._index

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def current(self) -> Optional[tuple]:
        if 0 <= self._index < len(self._snapshots):
            return self._snapshots[self._index]
        return None

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._snapshots) - 1

    def seed(self, rows: tuple) -> bool:
        """Record the loaded rows as the baseline when the stack is empty."""
        if self._snapshots:
            return False
        self._snapshots.append(tuple(rows))
        self._index = 0
        return True

    def record(self, rows: tuple) -> bool:
        """Capture `rows` if they differ from the snapshot under the cursor."""
        if self._suppress_next:
            self._suppress_next = False
            return False
        snap = tuple(rows)
        if self.current == snap:
            return False
        del self._snapshots[self._index + 1:]
        self._snapshots.append(snap)
        if len(self._snapshots) > self._capacity:
            del self._snapshots[0: len(self._snapshots) - self._capacity]
        self._index = len(self._snapshots) - 1
        return True

    def undo(self) -> Optional[tuple]:
        if not self.can_undo:
            return None
        self._index -= 1
        self._suppress_next = True
        _LOG.debug("undo -> %d/%d", self._index, len(self._snapshots))
        return self._snapshots[self._index]

    def redo(self) -> Optional[tuple]:
        if not self.can_redo:
            return None
        self._index += 1
        self._suppress_next = True
        _LOG.debug("redo -> %d/%d", self._index, len(self._snapshots))
        return self._snapshots[self._index]
