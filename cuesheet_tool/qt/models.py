# ruff: noqa
from __future__ import annotations

"""Qt table model over the live document's rows (internal).

The model is read-mostly: it mirrors the row store tuple it is given and
forwards in-place edits to a commit callback. Selection and fill preview are
drawn from the engines' state through `overlay` callables so the model never
owns interaction state.
"""

from typing import Callable, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtGui import QBrush, QColor

from ..columns import DEFAULT_SCHEMA, ColumnSchema, ColumnSpec
from ..cues import Cue
from ..fields import FieldSource
from .constants import (
    CUE_ID_ROLE,
    FILL_PREVIEW_TINT,
    LOW_CONFIDENCE,
    LOW_CONFIDENCE_TINT,
    SELECTION_TINT,
    STATUS_TINTS,
)

_SOURCE_LABELS = {
    FieldSource.UNSET: "not set",
    FieldSource.FILE_IMPORT: "imported from file",
    FieldSource.FILENAME_PARSE: "parsed from file name",
    FieldSource.USER: "entered by you",
    FieldSource.USER_APPROVED: "approved by you",
    FieldSource.USER_EDIT: "edited by you (saved to library)",
    FieldSource.LEARNED_DB: "matched from track library",
    FieldSource.PATTERN: "pattern match",
    FieldSource.AI_EXTRACTED: "AI lookup",
    FieldSource.USER_FILL: "filled by you",
    FieldSource.DEFAULT: "default",
}

# (row, col) -> bool
CellPredicate = Callable[[int, int], bool]
CommitCallback = Callable[[str, object, str], bool]


def display_text(cue: Cue, spec: ColumnSpec, row: int) -> str:
    if spec.key == "visibility":
        return "○" if cue.hidden else "●"
    if spec.key == "index":
        return str(row + 1)
    f = spec.field
    if f is None:
        return ""
    v = cue.value(f)
    if not v and spec.optional:
        return "N/A"
    return v


def tooltip_text(cue: Cue, spec: ColumnSpec) -> Optional[str]:
    f = spec.field
    if f is None:
        return None
    c = cue.cell(f)
    if c.source == FieldSource.UNSET and not c.value:
        return None
    label = _SOURCE_LABELS.get(c.source, c.source.value)
    return f"{spec.label}: {int(round(c.confidence * 100))}% confidence, {label}"


def _rgba(t) -> QColor:
    return QColor(int(t[0]), int(t[1]), int(t[2]), int(t[3]))


class CueTableModel(QAbstractTableModel):
    def __init__(
        self,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        *,
        commit: Optional[CommitCallback] = None,
        selected: Optional[CellPredicate] = None,
        fill_preview: Optional[CellPredicate] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._schema = schema
        self._rows: tuple = ()
        self._commit = commit
        self._selected = selected
        self._fill_preview = fill_preview

    def set_rows(self, rows: Sequence[Cue]) -> None:
        rows = tuple(rows)
        if len(rows) == len(self._rows) and rows:
            # Same shape: repaint in place so the view keeps its scroll position.
            self._rows = rows
            self.dataChanged.emit(self.index(0, 0), self.index(len(rows) - 1, len(self._schema) - 1))
            return
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()

    def set_overlays(self, selected: Optional[CellPredicate], fill_preview: Optional[CellPredicate]) -> None:
        self._selected = selected
        self._fill_preview = fill_preview
        self.refresh_overlays()

    def refresh_overlays(self) -> None:
        if self._rows:
            self.dataChanged.emit(
                self.index(0, 0),
                self.index(len(self._rows) - 1, len(self._schema) - 1),
                [Qt.BackgroundRole],
            )

    def cue_at(self, row: int) -> Optional[Cue]:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    def rowCount(self, parent=QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent=QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._schema)

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation != Qt.Horizontal:
            return None
        spec = self._schema.get(int(section))
        if spec is None:
            return None
        if role == Qt.DisplayRole:
            return spec.label + (" *" if spec.required else "")
        if role == Qt.ToolTipRole and spec.required:
            return f"{spec.label} is required for a complete cue"
        return None

    def data(self, index: QModelIndex, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        cue = self.cue_at(index.row())
        spec = self._schema.get(index.column())
        if cue is None or spec is None:
            return None
        r, c = index.row(), index.column()

        if role in (Qt.DisplayRole, Qt.EditRole):
            if role == Qt.EditRole and spec.field is not None:
                return cue.value(spec.field)
            return display_text(cue, spec, r)
        if role == Qt.ToolTipRole:
            if spec.key == "visibility":
                return "Show in export" if cue.hidden else "Hide from export"
            return tooltip_text(cue, spec)
        if role == Qt.ForegroundRole:
            if cue.hidden or (spec.optional and spec.field is not None and not cue.value(spec.field)):
                return QBrush(QColor(128, 128, 128))
            return None
        if role == Qt.BackgroundRole:
            if self._selected is not None and self._selected(r, c):
                return QBrush(_rgba(SELECTION_TINT))
            if self._fill_preview is not None and self._fill_preview(r, c):
                return QBrush(_rgba(FILL_PREVIEW_TINT))
            if spec.has_confidence and spec.field is not None:
                cell = cue.cell(spec.field)
                if cell.value and cell.confidence < LOW_CONFIDENCE:
                    return QBrush(_rgba(LOW_CONFIDENCE_TINT))
            tint = STATUS_TINTS.get(cue.status.value)
            if tint and tint[3]:
                return QBrush(_rgba(tint))
            return None
        if role == CUE_ID_ROLE:
            return cue.id
        return None

    def flags(self, index: QModelIndex):
        if not index.isValid():
            return Qt.NoItemFlags
        spec = self._schema.get(index.column())
        fl = Qt.ItemIsEnabled
        if spec is not None and spec.selectable:
            fl |= Qt.ItemIsSelectable
        if spec is not None and spec.editable and spec.field is not None:
            fl |= Qt.ItemIsEditable
        return fl

    def setData(self, index: QModelIndex, value, role=Qt.EditRole) -> bool:
        if role != Qt.EditRole or not index.isValid() or self._commit is None:
            return False
        cue = self.cue_at(index.row())
        spec = self._schema.get(index.column())
        if cue is None or spec is None or spec.field is None:
            return False
        # The row store notifies the window, which calls set_rows; nothing to emit here.
        return bool(self._commit(cue.id, spec.field, "" if value is None else str(value)))
