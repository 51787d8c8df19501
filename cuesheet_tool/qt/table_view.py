# ruff: noqa
from __future__ import annotations

"""Cue table view (internal).

Qt's own item selection is switched off: pointer and key input is routed to
the live document's selection engine, fill drag and controller, and the
model paints their state as overlays.
"""

from typing import Callable, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTableView

from ..columns import DEFAULT_SCHEMA, ColumnSchema
from .constants import FILL_HANDLE_PX

_KEY_NAMES = {
    Qt.Key_Escape: "escape",
    Qt.Key_Delete: "delete",
    Qt.Key_Backspace: "backspace",
    Qt.Key_Return: "enter",
    Qt.Key_Enter: "enter",
}


class CueTableView(QTableView):
    def __init__(self, controller, schema: ColumnSchema = DEFAULT_SCHEMA, parent=None):
        super().__init__(parent)
        self._ctl = controller
        self._schema = schema
        self._fill_dragging = False
        self.on_interaction: Optional[Callable[[], None]] = None

        self.setSelectionMode(QAbstractItemView.NoSelection)
        self.setEditTriggers(QAbstractItemView.DoubleClicked | QAbstractItemView.EditKeyPressed)
        self.setAlternatingRowColors(False)
        self.verticalHeader().setVisible(False)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.Interactive)
        self.horizontalHeader().setStretchLastSection(False)

    def apply_column_widths(self) -> None:
        for i, spec in enumerate(self._schema):
            self.setColumnWidth(i, max(int(spec.min_width), 24) + 40)

    def _ws(self):
        return self._ctl.working

    def _changed(self) -> None:
        m = self.model()
        if m is not None and hasattr(m, "refresh_overlays"):
            m.refresh_overlays()
        if self.on_interaction is not None:
            self.on_interaction()

    def _cell_at(self, ev) -> Optional[tuple[int, int]]:
        idx = self.indexAt(ev.position().toPoint())
        if not idx.isValid():
            return None
        return (idx.row(), idx.column())

    def _on_fill_handle(self, ev) -> bool:
        ws = self._ws()
        sel = None if ws is None else ws.selection.selection
        if sel is None or self.model() is None:
            return False
        rect = self.visualRect(self.model().index(sel.max_row, sel.max_col))
        corner = rect.bottomRight()
        p = ev.position().toPoint()
        return abs(p.x() - corner.x()) <= FILL_HANDLE_PX and abs(p.y() - corner.y()) <= FILL_HANDLE_PX

    # -- pointer -------------------------------------------------------------

    def mousePressEvent(self, ev):  # type: ignore[override]
        ws = self._ws()
        cell = self._cell_at(ev)
        if ev.button() != Qt.LeftButton or ws is None or cell is None:
            super().mousePressEvent(ev)
            return
        super().mousePressEvent(ev)
        r, c = cell
        spec = self._schema.get(c)
        if spec is not None and spec.key == "visibility":
            cue = ws.rows.row_at(r)
            if cue is not None:
                ws.editor.toggle_hidden(cue.id)
            return
        if self._on_fill_handle(ev):
            sel = ws.selection.selection
            if sel is not None and ws.editor.fill.begin(sel.max_row, sel.max_col):
                self._fill_dragging = True
                self._changed()
                return
        shift = bool(ev.modifiers() & Qt.ShiftModifier)
        ws.selection.begin_selection(r, c, extend_from_anchor=shift)
        self._changed()

    def mouseMoveEvent(self, ev):  # type: ignore[override]
        ws = self._ws()
        cell = self._cell_at(ev)
        if ws is None or cell is None:
            super().mouseMoveEvent(ev)
            return
        if self._fill_dragging:
            if ws.editor.fill.move(*cell):
                self._changed()
            return
        if ws.selection.is_dragging:
            # Applied on the next frame; the frame callback repaints.
            ws.selection.update_selection(*cell)
            return
        super().mouseMoveEvent(ev)

    def mouseReleaseEvent(self, ev):  # type: ignore[override]
        ws = self._ws()
        if ws is not None and self._fill_dragging:
            self._fill_dragging = False
            ws.editor.fill.release()
            self._changed()
            return
        if ws is not None and ws.selection.is_dragging:
            ws.selection.end_selection()
            self._changed()
            return
        super().mouseReleaseEvent(ev)

    # -- keyboard ------------------------------------------------------------

    def keyPressEvent(self, ev):  # type: ignore[override]
        if self.state() == QAbstractItemView.EditingState:
            super().keyPressEvent(ev)
            return
        key = ev.key()
        name = _KEY_NAMES.get(key)
        if name is None and Qt.Key_A <= key <= Qt.Key_Z:
            name = chr(int(key)).lower()
        ctrl = bool(ev.modifiers() & Qt.ControlModifier)
        shift = bool(ev.modifiers() & Qt.ShiftModifier)
        if name is not None and self._ctl.handle_key(name, ctrl=ctrl, shift=shift):
            ev.accept()
            self._changed()
            return
        if name == "enter":
            ws = self._ws()
            active = None if ws is None else ws.selection.active
            if active is not None and self.model() is not None:
                self.edit(self.model().index(active[0], active[1]))
                ev.accept()
                return
        super().keyPressEvent(ev)
