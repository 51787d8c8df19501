# ruff: noqa
from __future__ import annotations

"""Qt MainWindow (internal).

This module is imported lazily from `cuesheet_tool.qt_app.run_qt_gui()`.
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QTabBar,
    QVBoxLayout,
    QWidget,
)

from .. import __version__ as APP_VERSION
from ..columns import DEFAULT_SCHEMA
from ..constants import FRAME_INTERVAL_MS
from ..controller import CueSheetController
from ..export import CsvExporter
from ..fields import Field
from ..project_store import JsonProjectStore
from ..selection import FinalizedSelection
from ..suggestions import SUGGESTIBLE_FIELDS, custom_candidate, missing_fields
from .constants import AUTOSAVE_TICK_MS
from .menus import build_main_menus
from .models import CueTableModel
from .table_view import CueTableView
from .ui_helpers import (
    ask_update_library,
    open_logs_folder as _open_logs_folder_impl,
    show_status_message,
    show_warning_with_logs,
)

_FILELOG = logging.getLogger("cuesheet_tool.gui")


class MainWindow(QMainWindow):
    def __init__(self, store: Optional[JsonProjectStore] = None) -> None:
        super().__init__()
        self.setWindowTitle(f"Cue Sheet Editor v{APP_VERSION}")
        self._schema = DEFAULT_SCHEMA
        self._store = store or JsonProjectStore()
        self._bound_rows = None
        self._syncing_tabs = False

        self._ctl = CueSheetController(
            self._store,
            frame_scheduler=self._schedule_frame,
            notifier=self._warn,
            schema=self._schema,
        )
        docs = self._ctl.documents
        docs.add_live_listener(self._on_live_changed)
        docs.add_dirty_listener(self._on_dirty_changed)
        docs.add_selection_listener(self._on_selection_finalized)

        # ---- widgets ----
        self.tab_bar = QTabBar()
        self.tab_bar.setTabsClosable(True)
        self.tab_bar.setExpanding(False)
        self.tab_bar.setDocumentMode(True)
        self.tab_bar.currentChanged.connect(self._on_tab_clicked)
        self.tab_bar.tabCloseRequested.connect(self._on_tab_close_requested)

        self.model = CueTableModel(self._schema, commit=self._commit_cell)
        self.table = CueTableView(self._ctl, self._schema)
        self.table.setModel(self.model)
        self.table.apply_column_widths()
        self.table.on_interaction = self._update_status

        self.empty_label = QLabel("No cue sheet open. Use File → New project or File → Open project.")
        self.empty_label.setAlignment(Qt.AlignCenter)

        root = QWidget()
        self.setCentralWidget(root)
        outer = QVBoxLayout(root)
        outer.setContentsMargins(6, 6, 6, 6)
        outer.addWidget(self.tab_bar)
        outer.addWidget(self.table, 1)
        outer.addWidget(self.empty_label, 1)

        self.selection_label = QLabel("")
        self.statusBar().addPermanentWidget(self.selection_label)

        build_main_menus(self)

        self._autosave_timer = QTimer(self)
        self._autosave_timer.setInterval(AUTOSAVE_TICK_MS)
        self._autosave_timer.timeout.connect(self._ctl.tick)
        self._autosave_timer.start()

        self._on_live_changed(None)
        self.resize(1280, 760)
        _FILELOG.info("Main window ready (projects: %s)", self._store.root)

    # ---- plumbing ----

    def _schedule_frame(self, cb) -> None:
        def _run() -> None:
            cb()
            self.model.refresh_overlays()
            self._update_status()

        QTimer.singleShot(FRAME_INTERVAL_MS, _run)

    def _warn(self, title: str, message: str) -> None:
        show_warning_with_logs(self, self._open_logs_folder, title, message)

    def _open_logs_folder(self) -> None:
        _open_logs_folder_impl()

    def _log(self, msg: str) -> None:
        _FILELOG.info(msg)
        show_status_message(self, msg)

    # ---- live document binding ----

    def _on_live_changed(self, ws) -> None:
        if self._bound_rows is not None:
            self._bound_rows.remove_listener(self._on_rows_changed)
            self._bound_rows = None
        if ws is None:
            self.model.set_overlays(None, None)
            self.model.set_rows(())
        else:
            ws.rows.add_listener(self._on_rows_changed)
            self._bound_rows = ws.rows
            self.model.set_overlays(ws.selection.contains, ws.editor.fill.in_preview)
            self.model.set_rows(ws.rows.rows)
            x, y = ws.scroll_position
            QTimer.singleShot(0, lambda: self._restore_scroll(x, y))
        self.table.setVisible(ws is not None)
        self.empty_label.setVisible(ws is None)
        self._sync_tabs()
        self._update_status()

    def _restore_scroll(self, x: int, y: int) -> None:
        self.table.horizontalScrollBar().setValue(int(x))
        self.table.verticalScrollBar().setValue(int(y))

    def _remember_scroll(self) -> None:
        self._ctl.documents.set_scroll_position(
            self.table.horizontalScrollBar().value(),
            self.table.verticalScrollBar().value(),
        )

    def _on_rows_changed(self, rows: tuple, replay: bool) -> None:
        self.model.set_rows(rows)
        self._update_status()

    def _on_dirty_changed(self, tab_id: str, dirty: bool) -> None:
        self._sync_tabs()

    def _on_selection_finalized(self, fin: FinalizedSelection) -> None:
        self.model.refresh_overlays()
        self._update_status()

    def _sync_tabs(self) -> None:
        docs = self._ctl.documents
        self._syncing_tabs = True
        try:
            while self.tab_bar.count() > len(docs.tabs):
                self.tab_bar.removeTab(self.tab_bar.count() - 1)
            for i, doc in enumerate(docs.tabs):
                text = f"{doc.name} •" if doc.is_dirty else doc.name
                if i >= self.tab_bar.count():
                    self.tab_bar.addTab(text)
                else:
                    self.tab_bar.setTabText(i, text)
                self.tab_bar.setTabData(i, doc.id)
                self.tab_bar.setTabToolTip(i, doc.project_id)
            live = docs.live_id
            if live is not None:
                self.tab_bar.setCurrentIndex(docs.index_of(live))
        finally:
            self._syncing_tabs = False

    def _update_status(self) -> None:
        ws = self._ctl.working
        if ws is None:
            self.selection_label.setText("")
            self._act_undo.setEnabled(False)
            self._act_redo.setEnabled(False)
            return
        rows = ws.rows.rows
        done = sum(1 for c in rows if c.is_complete)
        parts = [f"{done}/{len(rows)} complete"]
        n = ws.selection.cell_count
        if n:
            parts.append(f"{n} cell{'s' if n != 1 else ''} in {ws.selection.row_count} row{'s' if ws.selection.row_count != 1 else ''}")
        self.selection_label.setText("   ".join(parts))
        self._act_undo.setEnabled(ws.history.can_undo)
        self._act_redo.setEnabled(ws.history.can_redo)

    # ---- tabs ----

    def _on_tab_clicked(self, index: int) -> None:
        if self._syncing_tabs or index < 0:
            return
        tab_id = self.tab_bar.tabData(index)
        if tab_id and tab_id != self._ctl.documents.live_id:
            self._remember_scroll()
            self._ctl.switch_tab(str(tab_id))

    def _on_tab_close_requested(self, index: int) -> None:
        tab_id = self.tab_bar.tabData(index)
        if tab_id:
            self._ctl.close_tab(str(tab_id))
            self._sync_tabs()

    def _close_current_tab(self) -> None:
        live = self._ctl.documents.live_id
        if live is not None:
            self._ctl.close_tab(live)
            self._sync_tabs()

    # ---- editing ----

    def _commit_cell(self, row_id: str, field: Field, value: str) -> bool:
        ws = self._ctl.working
        if ws is None or ws.editor.begin_edit(row_id, field) is None:
            return False
        res = ws.editor.commit_edit(value)
        if res.prompt is not None:
            prompt = res.prompt
            # Ask after the item editor has closed.
            QTimer.singleShot(0, lambda: self._resolve_prompt(prompt))
        return res.written

    def _resolve_prompt(self, prompt) -> None:
        ws = self._ctl.working
        if ws is None or ws.rows.get_row(prompt.row_id) is None:
            return
        ws.editor.resolve_update_prompt(prompt, ask_update_library(self, prompt))

    def _selected_row_ids(self) -> list[str]:
        ws = self._ctl.working
        if ws is None:
            return []
        ids = list(ws.selection.finalized().row_ids)
        if not ids and ws.selection.active is not None:
            cue = ws.rows.row_at(ws.selection.active[0])
            if cue is not None:
                ids = [cue.id]
        return ids

    def _undo_action(self) -> None:
        self._ctl.undo()
        self._update_status()

    def _redo_action(self) -> None:
        self._ctl.redo()
        self._update_status()

    def _clear_cells_action(self) -> None:
        ws = self._ctl.working
        if ws is not None:
            ws.editor.clear_selection_cells()

    def _select_all_action(self) -> None:
        ws = self._ctl.working
        if ws is not None:
            ws.selection.select_all()

    def _add_row_action(self) -> None:
        ws = self._ctl.working
        if ws is not None:
            ws.rows.add_row()

    def _remove_rows_action(self) -> None:
        ws = self._ctl.working
        ids = self._selected_row_ids()
        if ws is None or not ids:
            return
        ws.selection.clear()
        ws.rows.remove_rows(ids)

    def _approve_action(self) -> None:
        ws = self._ctl.working
        if ws is None:
            return
        n = sum(1 for rid in self._selected_row_ids() if ws.editor.approve_row(rid))
        self._log(f"Approved {n} cue{'s' if n != 1 else ''}.")

    def _unapprove_action(self) -> None:
        ws = self._ctl.working
        if ws is None:
            return
        for rid in self._selected_row_ids():
            ws.editor.unapprove_row(rid)

    def _toggle_hidden_action(self) -> None:
        ws = self._ctl.working
        if ws is None:
            return
        for rid in self._selected_row_ids():
            ws.editor.toggle_hidden(rid)

    def _suggest_action(self) -> None:
        ws = self._ctl.working
        if ws is None:
            return
        ids = set(self._selected_row_ids())
        rows = [c for c in ws.rows.rows if c.id in ids]
        missing = missing_fields(rows)
        if not missing:
            self._log("Every selected cue already has artist, composer, publisher, source and label.")
            return
        labels = [f"{f.value.replace('_', ' ').title()} ({n} missing)" for f, n in missing]
        choice, ok = QInputDialog.getItem(self, "Suggest values", "Field:", labels, 0, False)
        if not ok:
            return
        field = missing[labels.index(choice)][0]
        req, cands = self._ctl.suggestions_for(field)
        if req is None:
            return
        options = [f"{c.value}  ({int(c.confidence * 100)}%: {c.reasoning})" for c in cands]
        options.append("Custom value…")
        pick, ok = QInputDialog.getItem(
            self, "Suggest values", f"Value for {len(req.row_ids)} cue(s):", options, 0, False
        )
        if not ok:
            return
        idx = options.index(pick)
        if idx < len(cands):
            cand = cands[idx]
        else:
            text, ok = QInputDialog.getText(self, "Suggest values", "Custom value:")
            if not ok or not text.strip():
                return
            cand = custom_candidate(text)
        n = self._ctl.apply_suggestion(req, cand)
        self._log(f"Filled {field.value.replace('_', ' ')} on {n} cue{'s' if n != 1 else ''}.")

    # ---- projects ----

    def _new_project_action(self) -> None:
        pid, ok = QInputDialog.getText(self, "New project", "Project id (letters, digits, '.', '_', '-'):")
        if not ok or not pid.strip():
            return
        pid = pid.strip()
        try:
            loaded = self._store.create(pid, name=pid)
        except (FileExistsError, ValueError) as e:
            self._warn("Cannot create project", str(e))
            return
        self._ctl.new_project(pid, name=loaded.name, project_info=loaded.project_info)

    def _open_project_action(self) -> None:
        projects = self._store.list_projects()
        if not projects:
            self._warn("Open project", f"No saved projects in {self._store.root}.")
            return
        labels = [f"{p.name} ({p.project_id})" for p in projects]
        choice, ok = QInputDialog.getItem(self, "Open project", "Project:", labels, 0, False)
        if not ok:
            return
        self._remember_scroll()
        p = projects[labels.index(choice)]
        self._ctl.open_project(p.project_id, p.name)

    def _save_action(self) -> None:
        if self._ctl.save_now():
            self._log("Saved.")

    def _export_action(self) -> None:
        doc = self._ctl.documents.live_document
        if doc is None:
            return
        default = str(Path.home() / f"{doc.project_id}.csv")
        path, _ = QFileDialog.getSaveFileName(self, "Export CSV", default, "CSV files (*.csv)")
        if not path:
            return
        out = self._ctl.export(CsvExporter(Path(path)))
        if out is not None:
            self._log(f"Exported: {out}")

    # ---- shutdown ----

    def closeEvent(self, ev):  # type: ignore[override]
        self._autosave_timer.stop()
        try:
            self._ctl.shutdown()
        except Exception as e:
            _FILELOG.error("Saving on exit failed: %s", e)
        super().closeEvent(ev)
