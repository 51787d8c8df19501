"""Single-cell edits, batched clears, drag-fill and row approval.

Everything here turns user intent into `RowMutation` batches; the row store
applies them and the history/document layers react to the store's change
notification. One user action is always exactly one `apply_batch` call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .collaborators import SuggestionCandidate, SuggestionRequest, TrackLibrary
from .columns import DEFAULT_SCHEMA, ColumnSchema
from .constants import UNAPPROVED_CONFIDENCE
from .fields import REQUIRED_FIELDS, TRUSTED_SOURCES, Field, FieldSource, FieldUpdate
from .row_store import RowMutation, RowStore
from .selection import SelectionEngine
from .suggestions import apply_suggestion
from .util import has_content

_LOG = logging.getLogger("cuesheet_tool.editing")


@dataclass
class EditingCell:
    row_id: str
    field: Field
    original: str
    text: str


@dataclass(frozen=True)
class UpdatePrompt:
    """Decision point: the edited row came from the track library.

    Resolve with `EditEngine.resolve_update_prompt(prompt, update_library)`.
    """

    row_id: str
    field: Field
    new_value: str
    old_value: str
    track_name: str


@dataclass(frozen=True)
class CommitResult:
    written: bool
    prompt: Optional[UpdatePrompt] = None


def _user_update(value: str, source: FieldSource = FieldSource.USER) -> FieldUpdate:
    return FieldUpdate(value=value, source=source, confidence=1.0)


class EditEngine:
    def __init__(
        self,
        store: RowStore,
        selection: SelectionEngine,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        library: Optional[TrackLibrary] = None,
    ) -> None:
        self._store = store
        self._selection = selection
        self._schema = schema
        self._library = library
        self._editing: Optional[EditingCell] = None
        self.fill = FillDrag(store, schema)

    # -- edit mode -----------------------------------------------------------

    @property
    def editing(self) -> Optional[EditingCell]:
        return self._editing

    @property
    def is_editing(self) -> bool:
        return self._editing is not None

    def begin_edit(self, row_id: str, field: Field) -> Optional[EditingCell]:
        cue = self._store.get_row(row_id)
        col = self._schema.get(self._schema.index_of(field))
        if cue is None or col is None or not col.editable:
            return None
        cur = cue.value(field)
        self._editing = EditingCell(row_id=row_id, field=field, original=cur, text=cur)
        return self._editing

    def set_text(self, text: str) -> None:
        if self._editing is not None:
            self._editing.text = str(text)

    def cancel_edit(self) -> bool:
        had = self._editing is not None
        self._editing = None
        return had

    def commit_edit(self, text: Optional[str] = None) -> CommitResult:
        """Leave edit mode, writing the cell (Enter / blur)."""
        ed = self._editing
        if ed is None:
            return CommitResult(written=False)
        self._editing = None
        value = ed.text if text is None else str(text)
        return self.commit_cell(ed.row_id, ed.field, value)

    def commit_cell(self, row_id: str, field: Field, value: str) -> CommitResult:
        cue = self._store.get_row(row_id)
        if cue is None:
            _LOG.debug("commit_cell: row %r no longer exists", row_id)
            return CommitResult(written=False)
        value = str(value if value is not None else "")
        cell = cue.cell(field)
        old = cell.value

        was_from_db = cell.source == FieldSource.LEARNED_DB or cue.from_database
        if was_from_db and value != old and value.strip():
            return CommitResult(
                written=False,
                prompt=UpdatePrompt(
                    row_id=row_id,
                    field=field,
                    new_value=value,
                    old_value=old,
                    track_name=cue.value(Field.TRACK_NAME) or "this track",
                ),
            )

        if value == old and cell.source in TRUSTED_SOURCES and cell.confidence == 1.0:
            # Re-saving a value a person already vouched for is a no-op: no history entry.
            return CommitResult(written=False)
        n = self._store.apply_batch([RowMutation(row_id, {field: _user_update(value)})])
        return CommitResult(written=n > 0)

    def resolve_update_prompt(self, prompt: UpdatePrompt, update_library: bool) -> bool:
        source = FieldSource.USER_EDIT if update_library else FieldSource.USER
        n = self._store.apply_batch([RowMutation(prompt.row_id, {prompt.field: _user_update(prompt.new_value, source)})])
        if n and update_library and self._library is not None:
            cue = self._store.get_row(prompt.row_id)
            if cue is not None:
                self._library.save_track(cue, FieldSource.USER_EDIT)
        return n > 0

    # -- batched clear -------------------------------------------------------

    def clear_selection_cells(self) -> int:
        """Blank every editable cell inside the selection as one batch."""
        sel = self._selection.selection
        if sel is None:
            return 0
        mutations: List[RowMutation] = []
        for r in range(sel.min_row, sel.max_row + 1):
            cue = self._store.row_at(r)
            if cue is None:
                continue
            updates = {}
            for c in range(sel.min_col, sel.max_col + 1):
                col = self._schema.get(c)
                if col is None or not (col.editable and col.selectable) or col.field is None:
                    continue
                updates[col.field] = _user_update("")
            if updates:
                mutations.append(RowMutation(cue.id, updates))
        if not mutations:
            return 0
        return self._store.apply_batch(mutations)

    # -- row actions ---------------------------------------------------------

    def toggle_hidden(self, row_id: str) -> bool:
        return self._store.toggle_hidden(row_id)

    def approve_row(self, row_id: str) -> bool:
        cue = self._store.get_row(row_id)
        if cue is None or not all(has_content(cue.value(f)) for f in REQUIRED_FIELDS):
            return False
        updates = {f: _user_update(cue.value(f), FieldSource.USER_APPROVED) for f in REQUIRED_FIELDS}
        for f in (Field.ARTIST, Field.SOURCE, Field.LABEL):
            if has_content(cue.value(f)):
                updates[f] = _user_update(cue.value(f), FieldSource.USER_APPROVED)
        n = self._store.apply_batch([RowMutation(row_id, updates)])
        approved = self._store.get_row(row_id)
        if n and self._library is not None and approved is not None:
            self._library.save_track(approved, FieldSource.USER_APPROVED)
        return n > 0

    def apply_suggestion(self, request: SuggestionRequest, candidate: SuggestionCandidate) -> int:
        return apply_suggestion(self._store, request, candidate)

    def unapprove_row(self, row_id: str) -> bool:
        cue = self._store.get_row(row_id)
        if cue is None:
            return False
        if self._library is not None:
            self._library.forget_track(cue)
        learned = FieldSource.LEARNED_DB
        updates = {
            f: FieldUpdate(cue.value(f), learned, UNAPPROVED_CONFIDENCE) for f in REQUIRED_FIELDS
        }
        for f in (Field.ARTIST, Field.SOURCE, Field.LABEL):
            if has_content(cue.value(f)):
                updates[f] = FieldUpdate(cue.value(f), learned, cue.cell(f).confidence)
        return self._store.apply_batch([RowMutation(row_id, updates)]) > 0


class FillDrag:
    """Fill-handle drag: copies one cell's value up or down its own column."""

    def __init__(self, store: RowStore, schema: ColumnSchema = DEFAULT_SCHEMA) -> None:
        self._store = store
        self._schema = schema
        self._anchor_row: Optional[int] = None
        self._col: Optional[int] = None
        self._value = ""
        self._end_row: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._anchor_row is not None

    @property
    def anchor(self) -> Optional[tuple[int, int]]:
        if self._anchor_row is None or self._col is None:
            return None
        return (self._anchor_row, self._col)

    @property
    def value(self) -> str:
        return self._value

    def preview_range(self) -> Optional[tuple[int, int]]:
        if self._anchor_row is None or self._end_row is None:
            return None
        return (min(self._anchor_row, self._end_row), max(self._anchor_row, self._end_row))

    def in_preview(self, row: int, col: int) -> bool:
        rng = self.preview_range()
        if rng is None or col != self._col:
            return False
        return rng[0] <= row <= rng[1] and row != self._anchor_row

    def begin(self, row: int, col: int, value: Optional[str] = None) -> bool:
        cue = self._store.row_at(row)
        spec = self._schema.get(col)
        if cue is None or spec is None or not spec.fillable or spec.field is None:
            return False
        self._anchor_row = row
        self._col = col
        self._end_row = row
        self._value = cue.value(spec.field) if value is None else str(value)
        return True

    def move(self, row: int, col: int) -> bool:
        if self._anchor_row is None or col != self._col:
            return False
        if self._store.row_at(row) is None:
            return False
        self._end_row = row
        return True

    def cancel(self) -> None:
        self._anchor_row = None
        self._col = None
        self._end_row = None
        self._value = ""

    def release(self) -> int:
        """Apply the fill as one batch. Returns the number of rows changed."""
        rng = self.preview_range()
        anchor_row, col, value = self._anchor_row, self._col, self._value
        self.cancel()
        if rng is None or anchor_row is None or col is None or rng[0] == rng[1]:
            return 0
        spec = self._schema[col]
        assert spec.field is not None
        upd = FieldUpdate(value=value, source=FieldSource.USER_FILL, confidence=1.0)
        mutations: List[RowMutation] = []
        for r in range(rng[0], rng[1] + 1):
            if r == anchor_row:
                continue
            cue = self._store.row_at(r)
            if cue is not None:
                mutations.append(RowMutation(cue.id, {spec.field: upd}))
        return self._store.apply_batch(mutations)

