from __future__ import annotations

"""PySide6 (Qt) desktop shell.

This module is imported lazily from the CLI subcommand `gui`.
"""

import logging

_FILELOG = logging.getLogger("cuesheet_tool.gui")


def _show_missing_pyside6_message(extra: str | None = None) -> None:
    msg = """Qt GUI could not be launched.

This usually means PySide6 (Qt) is missing or broken in this Python environment.

Try reinstalling:
  pip install --upgrade --force-reinstall pyside6

Then launch the GUI with:
  python -m cuesheet_tool gui
"""
    if extra:
        msg = msg + "\nDetails:\n  " + str(extra).strip() + "\n"
    print(msg)


def run_qt_gui() -> int:
    """Launch the Qt GUI and return the event loop's exit code."""
    try:
        from PySide6.QtWidgets import QApplication
    except Exception as e:
        _FILELOG.exception("[gui] PySide6/Qt import failed: %s", e)
        _show_missing_pyside6_message(extra=str(e))
        raise

    app = QApplication.instance() or QApplication([])
    app.setApplicationName("Cue Sheet Editor")

    from .qt.main_window import MainWindow

    win = MainWindow()
    win.show()
    _FILELOG.info("MainWindow shown")

    # Surface the per-run log file path in the UI (if file logging is enabled).
    try:
        from .app_logging import current_log_path
        lp = current_log_path()
        if lp:
            win._log(f"[log] Verbose log: {lp}")
    except Exception:
        pass
    rc = int(app.exec())
    _FILELOG.info("app.exec exited rc=%s", rc)
    return rc
