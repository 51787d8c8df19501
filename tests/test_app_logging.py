from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

import cuesheet_tool.app_logging as al


def _reset_app_logging_state() -> None:
    for attr in ("_initialised", "_log_path"):
        if hasattr(al.init_app_logging, attr):
            delattr(al.init_app_logging, attr)


def test_find_app_root_prefers_readme(tmp_path: Path) -> None:
    root = tmp_path / "APPROOT"
    pkg = root / "cuesheet_tool" / "qt"
    pkg.mkdir(parents=True, exist_ok=True)
    (root / "README.md").write_text("hi", encoding="utf-8")

    found = al.find_app_root(pkg)
    assert found.resolve() == root.resolve()


def test_resolve_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CUESHEET_LOG_LEVEL", "debug")
    assert al._resolve_level() == logging.DEBUG
    monkeypatch.setenv("CUESHEET_LOG_LEVEL", "nonsense")
    assert al._resolve_level() == logging.INFO
    monkeypatch.delenv("CUESHEET_LOG_LEVEL")
    assert al._resolve_level() == logging.INFO


def test_init_app_logging_creates_log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(al, "find_app_root", lambda _start=None: tmp_path)
    monkeypatch.setattr(al, "LOGS_DIRNAME", "logs_test")
    monkeypatch.delenv("CUESHEET_LOG_TO_CONSOLE", raising=False)

    _reset_app_logging_state()

    orig_out, orig_err, orig_hook = sys.stdout, sys.stderr, sys.excepthook
    try:
        lp = al.init_app_logging(component="unit")
        assert lp is not None
        assert lp.exists()
        assert lp.parent.name == "logs_test"
        assert lp.name.startswith("unit_")

        assert al.current_log_path() == lp
        assert al.current_logs_dir() == lp.parent
        # A second call is a no-op returning the same file.
        assert al.init_app_logging(component="other") == lp

        sys.stdout.write("hello\n")
        sys.stdout.flush()
        logging.getLogger("cuesheet_tool").warning("test log line")
    finally:
        sys.stdout, sys.stderr, sys.excepthook = orig_out, orig_err, orig_hook

        root_logger = logging.getLogger()
        for h in list(root_logger.handlers):
            if isinstance(h, logging.FileHandler):
                try:
                    h.close()
                except Exception:
                    pass
                root_logger.removeHandler(h)

        _reset_app_logging_state()

    text = lp.read_text(encoding="utf-8")
    assert "Cue Sheet Editor" in text
    assert "test log line" in text


def test_current_logs_dir_without_init(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _reset_app_logging_state()
    monkeypatch.setattr(al, "find_app_root", lambda _start=None: tmp_path)
    monkeypatch.setattr(al, "LOGS_DIRNAME", "logs_test2")
    assert al.current_log_path() is None
    assert al.current_logs_dir() == tmp_path / "logs_test2"
