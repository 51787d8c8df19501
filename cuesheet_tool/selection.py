"""Rectangular cell-range selection (rows x schema columns).

The engine is a two-phase state machine (idle / dragging). Pointer moves
during a drag go through `FrameThrottle`, which keeps only the latest
requested position and applies it once per frame. `end_selection()` flushes
whatever is pending, so the final selection is exact even when intermediate
positions were dropped.

Indices are display positions: rows as ordered by the row store, columns as
ordered by the schema (non-selectable columns included, never targetable).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .columns import DEFAULT_SCHEMA, ColumnSchema
from .fields import Field

_LOG = logging.getLogger("cuesheet_tool.selection")

# Schedules a zero-arg callback for the next frame.
FrameScheduler = Callable[[Callable[[], None]], None]


def run_immediately(cb: Callable[[], None]) -> None:
    cb()


class FrameThrottle:
    """Coalesces calls so at most one runs per frame; the latest arguments win."""

    def __init__(self, apply: Callable[[int, int], None], scheduler: Optional[FrameScheduler] = None) -> None:
        self._apply = apply
        self._scheduler = scheduler or run_immediately
        self._pending: Optional[tuple[int, int]] = None
        self._scheduled = False
        self._generation = 0

    @property
    def pending(self) -> Optional[tuple[int, int]]:
        return self._pending

    def request(self, row: int, col: int) -> None:
        self._pending = (row, col)
        if self._scheduled:
            return
        self._scheduled = True
        gen = self._generation
        self._scheduler(lambda: self._on_frame(gen))

    def _on_frame(self, generation: int) -> None:
        if generation != self._generation:
            return  # cancelled or already flushed
        self._scheduled = False
        self.flush()

    def flush(self) -> None:
        pending, self._pending = self._pending, None
        if self._scheduled:
            self._scheduled = False
            self._generation += 1
        if pending is not None:
            self._apply(*pending)

    def cancel(self) -> None:
        self._pending = None
        if self._scheduled:
            self._scheduled = False
            self._generation += 1


class SelectionPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class Selection:
    anchor_row: int
    anchor_col: int
    active_row: int
    active_col: int

    @property
    def min_row(self) -> int:
        return min(self.anchor_row, self.active_row)

    @property
    def max_row(self) -> int:
        return max(self.anchor_row, self.active_row)

    @property
    def min_col(self) -> int:
        return min(self.anchor_col, self.active_col)

    @property
    def max_col(self) -> int:
        return max(self.anchor_col, self.active_col)

    def contains(self, row: int, col: int) -> bool:
        return self.min_row <= row <= self.max_row and self.min_col <= col <= self.max_col


@dataclass(frozen=True)
class SelectedCell:
    row_id: str
    row_index: int
    col_index: int
    field: Field
    value: str


@dataclass(frozen=True)
class FinalizedSelection:
    """What the selection covers, for contextual UI. Carries no geometry."""

    cells: tuple[SelectedCell, ...]
    row_ids: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.cells

    def fields(self) -> list[Field]:
        out: list[Field] = []
        for c in self.cells:
            if c.field not in out:
                out.append(c.field)
        return out


EMPTY_SELECTION = FinalizedSelection(cells=(), row_ids=())

SelectionListener = Callable[[FinalizedSelection], None]


class SelectionEngine:
    def __init__(
        self,
        rows_provider: Callable[[], Sequence],
        schema: ColumnSchema = DEFAULT_SCHEMA,
        frame_scheduler: Optional[FrameScheduler] = None,
    ) -> None:
        self._rows = rows_provider
        self._schema = schema
        self._phase = SelectionPhase.IDLE
        self._anchor: Optional[tuple[int, int]] = None
        self._active: Optional[tuple[int, int]] = None
        self._throttle = FrameThrottle(self._apply_update, frame_scheduler)
        self._listeners: List[SelectionListener] = []

    # -- state ---------------------------------------------------------------

    @property
    def phase(self) -> SelectionPhase:
        return self._phase

    @property
    def is_dragging(self) -> bool:
        return self._phase == SelectionPhase.DRAGGING

    @property
    def anchor(self) -> Optional[tuple[int, int]]:
        return self._anchor

    @property
    def active(self) -> Optional[tuple[int, int]]:
        return self._active

    @property
    def selection(self) -> Optional[Selection]:
        if self._anchor is None or self._active is None:
            return None
        return Selection(self._anchor[0], self._anchor[1], self._active[0], self._active[1])

    @property
    def bounds(self) -> Optional[Selection]:
        return self.selection

    def contains(self, row: int, col: int) -> bool:
        sel = self.selection
        return bool(sel is not None and sel.contains(row, col))

    @property
    def row_count(self) -> int:
        sel = self.selection
        return 0 if sel is None else sel.max_row - sel.min_row + 1

    @property
    def cell_count(self) -> int:
        sel = self.selection
        if sel is None:
            return 0
        cols = sum(1 for c in range(sel.min_col, sel.max_col + 1) if self._schema.is_selectable(c))
        return self.row_count * cols

    def add_listener(self, cb: SelectionListener) -> None:
        self._listeners.append(cb)

    def remove_listener(self, cb: SelectionListener) -> None:
        try:
            self._listeners.remove(cb)
        except ValueError:
            pass

    # -- transitions ---------------------------------------------------------

    def _valid_target(self, row: int, col: int) -> bool:
        if not self._schema.is_selectable(col):
            return False
        return 0 <= row < len(self._rows())

    def begin_selection(self, row: int, col: int, extend_from_anchor: bool = False) -> bool:
        if not self._valid_target(row, col):
            _LOG.debug("begin_selection ignored: (%s, %s) is not a selectable cell", row, col)
            return False
        self._throttle.cancel()
        if extend_from_anchor and self._anchor is not None:
            # Shift-click: move the active corner, keep the anchor.
            self._active = (row, col)
            self._phase = SelectionPhase.IDLE
            self._emit(self.finalized())
            return True
        self._anchor = (row, col)
        self._active = (row, col)
        self._phase = SelectionPhase.DRAGGING
        return True

    def update_selection(self, row: int, col: int) -> bool:
        if self._phase != SelectionPhase.DRAGGING or self._anchor is None:
            return False
        if not self._valid_target(row, col):
            return False
        self._throttle.request(row, col)
        return True

    def _apply_update(self, row: int, col: int) -> None:
        if self._phase != SelectionPhase.DRAGGING:
            return
        self._active = (row, col)

    def end_selection(self) -> Optional[FinalizedSelection]:
        if self._phase != SelectionPhase.DRAGGING:
            return None
        self._throttle.flush()
        self._phase = SelectionPhase.IDLE
        fin = self.finalized()
        self._emit(fin)
        return fin

    def clear(self) -> None:
        self._throttle.cancel()
        had = self._anchor is not None or self._active is not None
        self._anchor = None
        self._active = None
        self._phase = SelectionPhase.IDLE
        if had:
            self._emit(EMPTY_SELECTION)

    def select_all(self) -> bool:
        n = len(self._rows())
        cols = self._schema.selectable_indices()
        if n == 0 or not cols:
            return False
        self._throttle.cancel()
        self._anchor = (0, cols[0])
        self._active = (n - 1, cols[-1])
        self._phase = SelectionPhase.IDLE
        self._emit(self.finalized())
        return True

    # -- materialization -----------------------------------------------------

    def finalized(self) -> FinalizedSelection:
        sel = self.selection
        if sel is None:
            return EMPTY_SELECTION
        rows = self._rows()
        cells: list[SelectedCell] = []
        row_ids: list[str] = []
        for r in range(sel.min_row, min(sel.max_row, len(rows) - 1) + 1):
            cue = rows[r]
            row_ids.append(cue.id)
            for c in range(sel.min_col, sel.max_col + 1):
                spec = self._schema.get(c)
                if spec is None or not spec.selectable or spec.field is None:
                    continue
                cells.append(SelectedCell(cue.id, r, c, spec.field, cue.value(spec.field)))
        return FinalizedSelection(cells=tuple(cells), row_ids=tuple(row_ids))

    def _emit(self, fin: FinalizedSelection) -> None:
        for cb in list(self._listeners):
            cb(fin)
