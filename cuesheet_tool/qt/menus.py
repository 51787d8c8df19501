# ruff: noqa
from __future__ import annotations

"""Qt menus and actions (internal).

Keep this module **side-effect free**: it must not create a QApplication or windows at import time.
"""

from PySide6.QtGui import QAction, QKeySequence


def _add(win, menu, text: str, tip: str, slot, shortcut=None) -> QAction:
    act = QAction(text, win)
    act.setToolTip(tip)
    act.setStatusTip(tip)
    if shortcut is not None:
        act.setShortcut(shortcut)
    act.triggered.connect(slot)
    menu.addAction(act)
    return act


def build_main_menus(win) -> None:
    """Build the main menu bar and wire actions for the given MainWindow."""
    menu = win.menuBar()

    # ---- File ----
    m_file = menu.addMenu("File")
    m_file.setToolTipsVisible(True)
    _add(win, m_file, "New project…", "Create an empty cue sheet in a new tab.", win._new_project_action, QKeySequence.New)
    _add(win, m_file, "Open project…", "Open a saved cue sheet in a new tab.", win._open_project_action, QKeySequence.Open)
    _add(win, m_file, "Save", "Save the current cue sheet now.", win._save_action, QKeySequence.Save)
    _add(win, m_file, "Export CSV…", "Export visible cues to a CSV file.", win._export_action)
    m_file.addSeparator()
    _add(win, m_file, "Close tab", "Close the current cue sheet.", win._close_current_tab, QKeySequence.Close)
    _add(win, m_file, "Exit", "Quit Cue Sheet Editor.", win.close)

    # ---- Edit ----
    # Undo/redo/delete go through the table's key handler; these entries only mirror them.
    m_edit = menu.addMenu("Edit")
    m_edit.setToolTipsVisible(True)
    win._act_undo = _add(win, m_edit, "Undo", "Undo the last change (Ctrl+Z).", win._undo_action)
    win._act_redo = _add(win, m_edit, "Redo", "Redo (Ctrl+Shift+Z or Ctrl+Y).", win._redo_action)
    m_edit.addSeparator()
    _add(win, m_edit, "Clear cells", "Blank every editable cell in the selection (Delete).", win._clear_cells_action)
    _add(win, m_edit, "Select all", "Select every cue (Ctrl+A).", win._select_all_action)

    # ---- Cue ----
    m_cue = menu.addMenu("Cue")
    m_cue.setToolTipsVisible(True)
    _add(win, m_cue, "Add cue", "Append an empty cue.", win._add_row_action)
    _add(win, m_cue, "Remove selected cues", "Delete the selected cue rows.", win._remove_rows_action)
    m_cue.addSeparator()
    _add(win, m_cue, "Approve", "Mark composer/publisher as approved and save to the library.", win._approve_action)
    _add(win, m_cue, "Unapprove", "Revert approved values to library matches.", win._unapprove_action)
    _add(win, m_cue, "Show/hide in export", "Toggle whether the cue is exported.", win._toggle_hidden_action)
    m_cue.addSeparator()
    _add(win, m_cue, "Suggest values…", "Suggest a value for an empty field from similar cues.", win._suggest_action)

    # ---- Help ----
    m_help = menu.addMenu("Help")
    m_help.setToolTipsVisible(True)
    _add(win, m_help, "Open logs folder", "Open the folder with this run's log file.", win._open_logs_folder)
