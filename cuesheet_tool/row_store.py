"""Ordered collection of cues with stable identity.

All writes go through `apply_batch` (or one of the thin wrappers around it),
which notifies change listeners once per call with the complete post-batch
row tuple. Listeners therefore never observe a half-applied batch, and the
undo history records at most one entry per batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .cues import Cue, new_cue_id
from .fields import Field, FieldSource, FieldUpdate

_LOG = logging.getLogger("cuesheet_tool.rows")

# (rows after the change, replay) -- replay is True for undo/redo restores.
ChangeListener = Callable[[tuple, bool], None]


@dataclass(frozen=True)
class RowMutation:
    row_id: str
    updates: Mapping[Field, FieldUpdate]


def _unique_rows(rows: Iterable[Cue]) -> List[Cue]:
    seen: set[str] = set()
    out: List[Cue] = []
    for cue in sorted(rows, key=lambda c: c.order_index):
        if cue.id in seen:
            fresh = new_cue_id()
            _LOG.warning("Duplicate cue id %r re-keyed as %r", cue.id, fresh)
            cue = Cue(id=fresh, order_index=cue.order_index, hidden=cue.hidden, cells=cue.cells)
        seen.add(cue.id)
        out.append(cue)
    return out


class RowStore:
    def __init__(self, rows: Iterable[Cue] = ()) -> None:
        self._rows: List[Cue] = _unique_rows(rows)
        self._pos: Dict[str, int] = {}
        self._listeners: List[ChangeListener] = []
        self._reindex()

    # -- reads ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> tuple:
        return tuple(self._rows)

    def snapshot(self) -> tuple:
        return tuple(self._rows)

    def row_ids(self) -> list[str]:
        return [c.id for c in self._rows]

    def get_row(self, row_id: str) -> Optional[Cue]:
        pos = self._pos.get(row_id)
        return None if pos is None else self._rows[pos]

    def row_at(self, index: int) -> Optional[Cue]:
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    def index_of(self, row_id: str) -> int:
        return self._pos.get(row_id, -1)

    # -- listeners -----------------------------------------------------------

    def add_listener(self, cb: ChangeListener) -> None:
        self._listeners.append(cb)

    def remove_listener(self, cb: ChangeListener) -> None:
        try:
            self._listeners.remove(cb)
        except ValueError:
            pass

    def _notify(self, replay: bool = False) -> None:
        snap = tuple(self._rows)
        for cb in list(self._listeners):
            cb(snap, replay)

    def _reindex(self) -> None:
        self._pos = {c.id: i for i, c in enumerate(self._rows)}

    # -- writes --------------------------------------------------------------

    def set_field(
        self,
        row_id: str,
        field: Field,
        value: str,
        source: FieldSource,
        confidence: float = 1.0,
    ) -> bool:
        upd = FieldUpdate(value=value, source=source, confidence=confidence)
        return self.apply_batch([RowMutation(row_id, {field: upd})]) > 0

    def apply_batch(self, mutations: Sequence[RowMutation]) -> int:
        """Apply every mutation, then notify once. Returns the number of rows changed.

        Mutations for unknown row ids are skipped. Several mutations for the
        same row merge in order.
        """
        changed: Dict[int, Cue] = {}
        for m in mutations:
            pos = self._pos.get(m.row_id)
            if pos is None:
                _LOG.debug("apply_batch: skipping stale row id %r", m.row_id)
                continue
            current = changed.get(pos, self._rows[pos])
            changed[pos] = current.with_updates(m.updates)

        n = 0
        for pos, cue in changed.items():
            if cue != self._rows[pos]:
                self._rows[pos] = cue
                n += 1
        if n:
            self._notify()
        return n

    def set_hidden(self, row_id: str, hidden: bool) -> bool:
        pos = self._pos.get(row_id)
        if pos is None:
            return False
        cue = self._rows[pos]
        if cue.hidden == bool(hidden):
            return False
        self._rows[pos] = cue.with_hidden(hidden)
        self._notify()
        return True

    def toggle_hidden(self, row_id: str) -> bool:
        cue = self.get_row(row_id)
        if cue is None:
            return False
        return self.set_hidden(row_id, not cue.hidden)

    def add_row(self, cue: Optional[Cue] = None, *, at: Optional[int] = None) -> Cue:
        new = cue if cue is not None else Cue(id=new_cue_id())
        if new.id in self._pos:
            new = Cue(id=new_cue_id(), hidden=new.hidden, cells=new.cells)
        pos = len(self._rows) if at is None else max(0, min(int(at), len(self._rows)))
        self._rows.insert(pos, new)
        self._renumber()
        self._notify()
        return self._rows[pos]

    def remove_rows(self, row_ids: Iterable[str]) -> int:
        drop = {rid for rid in row_ids if rid in self._pos}
        if not drop:
            return 0
        self._rows = [c for c in self._rows if c.id not in drop]
        self._renumber()
        self._notify()
        return len(drop)

    def replace_all(self, rows: Iterable[Cue], *, replay: bool = False) -> None:
        """Swap in a whole row list (document load, undo/redo restore)."""
        self._rows = list(rows)
        self._reindex()
        self._notify(replay=replay)

    def _renumber(self) -> None:
        self._rows = [c if c.order_index == i else c.with_order(i) for i, c in enumerate(self._rows)]
        self._reindex()
