from __future__ import annotations

import argparse
from pathlib import Path

from .errors import CueSheetError
from .export import CsvExporter, build_export_payload
from .fields import Field
from .project_store import JsonProjectStore
from .util import dumps_pretty


def _store(args: argparse.Namespace) -> JsonProjectStore:
    root = str(getattr(args, "projects_dir", "") or "").strip()
    return JsonProjectStore(Path(root) if root else None)


def _cmd_gui(_args: argparse.Namespace) -> int:
    """Launch the GUI (PySide6 / Qt)."""
    try:
        from .app_logging import init_app_logging
        init_app_logging(component="gui")
    except Exception:
        pass
    from .qt_app import run_qt_gui

    try:
        rv = run_qt_gui()
        try:
            rc = int(rv)
        except Exception:
            rc = None
        if rc is None:
            # This is the "silent exit" failure mode. Make it loud and non-zero.
            print("[gui] Qt returned no exit code (likely exited before showing a window).")
            return 2
        return rc
    except BaseException as e:
        import logging
        import traceback
        try:
            tb = traceback.format_exc()
        except Exception:
            tb = f"{type(e).__name__}: {e}"
        logging.getLogger("cuesheet_tool").error("[gui] Uncaught error during Qt launch:\n%s", tb)
        print("[gui] Uncaught error during Qt launch (see logs):")
        print(tb)
        # Preserve Ctrl+C behavior.
        if isinstance(e, KeyboardInterrupt):
            raise
        return 2


def _cmd_qt_diag(_args: argparse.Namespace) -> int:
    """Diagnose whether Qt/PySide6 can create a QApplication on this machine."""
    try:
        from .app_logging import init_app_logging
        init_app_logging(component="qt_diag")
    except Exception:
        pass

    print("[qt-diag] starting")
    import sys
    print(f"[qt-diag] python={sys.version}")

    try:
        import PySide6  # type: ignore
        print(f"[qt-diag] PySide6={getattr(PySide6, '__version__', 'unknown')}")
    except Exception as e:
        print(f"[qt-diag] PySide6 import failed: {e}")
        return 2

    try:
        from PySide6.QtCore import QTimer
        from PySide6.QtWidgets import QApplication, QWidget
        print("[qt-diag] imports OK")
    except Exception as e:
        print(f"[qt-diag] Qt imports failed: {e}")
        return 2

    try:
        app = QApplication.instance() or QApplication([])
        print("[qt-diag] QApplication created")
        w = QWidget()
        w.setWindowTitle("Cue Sheet Editor Qt diag")
        w.resize(200, 80)
        w.show()
        app.processEvents()
        print(f"[qt-diag] widget visible={bool(w.isVisible())}")
        QTimer.singleShot(200, app.quit)
        rc = int(app.exec())
        print(f"[qt-diag] event loop exited rc={rc}")
        return 0
    except Exception as e:
        print(f"[qt-diag] failed during QApplication/show/exec: {e}")
        return 2


def _cmd_list(args: argparse.Namespace) -> int:
    store = _store(args)
    projects = store.list_projects()
    if bool(getattr(args, "json", False)):
        print(dumps_pretty(projects))
        return 0
    if not projects:
        print(f"No projects in {store.root}")
        return 0
    print(f"== Cue Sheet Editor: projects in {store.root} ==")
    for p in projects:
        saved = f"  (saved {p.saved_at})" if p.saved_at else ""
        print(f"  - {p.project_id}: {p.name}  [{p.complete_count}/{p.row_count} complete]{saved}")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    store = _store(args)
    try:
        doc = store.load_document(args.project_id)
    except (CueSheetError, ValueError) as e:
        print(f"[show] {e}")
        return 2
    if args.json:
        print(dumps_pretty({
            "projectInfo": doc.project_info.to_dict(),
            "cues": [c.to_dict() for c in doc.rows],
        }))
        return 0
    _print_human(doc)
    return 0


def _print_human(doc) -> None:
    info = doc.project_info
    print("== Cue Sheet Editor: SHOW ==")
    print(f"Project:      {doc.name}")
    if info.spot_title:
        print(f"Spot title:   {info.spot_title}")
    if info.type:
        print(f"Type:         {info.type}")
    print(f"Prepared:     {info.date_prepared}")
    rows = list(doc.rows)
    done = sum(1 for c in rows if c.is_complete)
    print(f"Cues:         {len(rows)} ({done} complete)")
    if not rows:
        return
    print("")
    for n, c in enumerate(rows, start=1):
        flag = " (hidden)" if c.hidden else ""
        print(f"  {n:>3}. [{c.status.value}] {c.value(Field.TRACK_NAME) or '(untitled)'}{flag}")
        comp = c.value(Field.COMPOSER) or "-"
        pub = c.value(Field.PUBLISHER) or "-"
        print(f"       composer: {comp} | publisher: {pub}")


def _cmd_export(args: argparse.Namespace) -> int:
    store = _store(args)
    try:
        doc = store.load_document(args.project_id)
    except (CueSheetError, ValueError) as e:
        print(f"[export] {e}")
        return 2
    out = Path(args.out) if args.out else Path(f"{args.project_id}.csv")
    payload = build_export_payload(doc.rows, doc.project_info)
    path = CsvExporter(out).export(payload)
    if path is None:
        print(f"[export] Could not write {out}")
        return 2
    print(f"Exported {len(payload.rows)} cues: {path}")
    return 0


def _cmd_new(args: argparse.Namespace) -> int:
    store = _store(args)
    try:
        doc = store.create(args.project_id, name=str(args.name or ""))
    except (FileExistsError, ValueError) as e:
        print(f"[new] {e}")
        return 2
    print(f"Created project {args.project_id} ({doc.name}): {store.path_for(args.project_id)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="cuesheet_tool", description="Cue Sheet Editor (music licensing cue sheets).")
    p.add_argument(
        "--projects-dir",
        default="",
        help="Folder holding <project_id>.json files (default: CUESHEET_PROJECTS_DIR or <app>/projects).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_gui = sub.add_parser("gui", help="Launch the desktop editor (PySide6).")
    p_gui.set_defaults(func=_cmd_gui)

    p_diag = sub.add_parser("qt-diag", help="Check that Qt can start on this machine.")
    p_diag.set_defaults(func=_cmd_qt_diag)

    p_list = sub.add_parser("list", help="List saved projects.")
    p_list.add_argument("--json", action="store_true", help="Emit JSON.")
    p_list.set_defaults(func=_cmd_list)

    p_show = sub.add_parser("show", help="Print a project's cues.")
    p_show.add_argument("project_id")
    p_show.add_argument("--json", action="store_true", help="Emit JSON.")
    p_show.set_defaults(func=_cmd_show)

    p_exp = sub.add_parser("export", help="Export a project's visible cues to CSV.")
    p_exp.add_argument("project_id")
    p_exp.add_argument("--out", default="", help="Output CSV path (default: <project_id>.csv).")
    p_exp.set_defaults(func=_cmd_export)

    p_new = sub.add_parser("new", help="Create an empty project.")
    p_new.add_argument("project_id")
    p_new.add_argument("--name", default="", help="Display name (default: the project id).")
    p_new.set_defaults(func=_cmd_new)

    args = p.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
