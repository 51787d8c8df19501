# ruff: noqa
from __future__ import annotations

"""Qt small helper utilities (internal).

Imported lazily via `MainWindow`.
"""

from pathlib import Path


def open_logs_folder() -> None:
    """Open the logs folder in the OS file explorer (best-effort)."""
    try:
        from PySide6.QtCore import QUrl
        from PySide6.QtGui import QDesktopServices
    except Exception:
        return

    try:
        from ..app_logging import current_logs_dir

        p = current_logs_dir()
        if p is None:
            return
        pth = Path(p)
        try:
            pth.mkdir(parents=True, exist_ok=True)
        except Exception:
            pass

        ok = QDesktopServices.openUrl(QUrl.fromLocalFile(str(pth)))
        if not ok:
            # Fallback for Windows shells that don't like QDesktopServices.
            try:
                import os
                os.startfile(str(pth))  # type: ignore[attr-defined]
            except Exception:
                pass
    except Exception:
        # Best-effort only.
        pass


def show_msg_with_logs(
    parent,
    open_logs_cb,
    title: str,
    text: str,
    *,
    icon: str = 'critical',
    tip: str | None = None,
    details: str | None = None,
) -> None:
    # Show a message box with an 'Open logs folder' button.
    try:
        from PySide6.QtWidgets import QMessageBox
    except Exception:
        return

    msg = str(text or '').strip() or 'Unknown error'
    if tip:
        msg = msg + "\n\n" + str(tip).strip()

    dlg = QMessageBox(parent)
    if str(icon or '').lower().strip() == 'warning':
        dlg.setIcon(QMessageBox.Warning)
    else:
        dlg.setIcon(QMessageBox.Critical)
    dlg.setWindowTitle(str(title or 'Message'))
    dlg.setText(msg)
    if details:
        dlg.setDetailedText(str(details))

    btn_logs = dlg.addButton('Open logs folder', QMessageBox.ActionRole)
    dlg.addButton(QMessageBox.Ok)

    try:
        dlg.exec()
    except Exception:
        return

    if dlg.clickedButton() == btn_logs:
        try:
            open_logs_cb()
        except Exception:
            pass


def show_warning_with_logs(parent, open_logs_cb, title: str, text: str, *, tip: str | None = None, details: str | None = None) -> None:
    show_msg_with_logs(parent, open_logs_cb, title, text, icon='warning', tip=tip, details=details)


def ask_update_library(parent, prompt) -> bool:
    """Yes/No: push an edit of a library-matched row back to the track library."""
    from PySide6.QtWidgets import QMessageBox

    text = (
        f'"{prompt.track_name}" was matched from the track library.\n\n'
        f'Change {prompt.field.value.replace("_", " ")} from "{prompt.old_value}" '
        f'to "{prompt.new_value}" in the library too?'
    )
    res = QMessageBox.question(parent, 'Update track library?', text, QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
    return res == QMessageBox.Yes


def show_status_message(win: object, msg: str, timeout_ms: int = 6000) -> None:
    """Best-effort status bar hint."""
    try:
        sb = win.statusBar() if hasattr(win, 'statusBar') else None
        if sb is not None:
            sb.showMessage(str(msg or '').strip(), int(timeout_ms))
    except Exception:
        pass
