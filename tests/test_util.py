from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from cuesheet_tool import util
from cuesheet_tool.fields import FieldSource


@dataclass
class _D:
    a: int
    p: Path
    s: FieldSource


def test_to_jsonable_and_dumps_pretty(tmp_path: Path) -> None:
    obj = {
        "x": _D(a=1, p=tmp_path / "file.txt", s=FieldSource.USER_FILL),
        "lst": [Path("/tmp"), {"k": (1, 2)}],
    }
    js = util.to_jsonable(obj)
    assert isinstance(js, dict)
    assert js["x"]["a"] == 1
    assert isinstance(js["x"]["p"], str)
    assert js["x"]["s"] == "user_fill"
    assert js["lst"][1]["k"] == [1, 2]

    back = json.loads(util.dumps_pretty(obj))
    assert back["x"]["a"] == 1


def test_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("X", raising=False)
    assert util.env_bool("X", default=True) is True
    assert util.env_bool("X", default=False) is False

    monkeypatch.setenv("X", "1")
    assert util.env_bool("X") is True
    monkeypatch.setenv("X", "yes")
    assert util.env_bool("X") is True
    monkeypatch.setenv("X", "off")
    assert util.env_bool("X") is False


def test_env_float(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("Y", raising=False)
    assert util.env_float("Y", 2.0) == 2.0
    monkeypatch.setenv("Y", " 0.5 ")
    assert util.env_float("Y", 2.0) == 0.5
    monkeypatch.setenv("Y", "soon")
    assert util.env_float("Y", 2.0) == 2.0


def test_text_helpers() -> None:
    assert util.normalize_text("  APM Music ") == "apm music"
    assert util.normalize_text(None) == ""
    assert util.has_content("x")
    assert not util.has_content("  ")
    assert not util.has_content(" - ")


def test_find_app_root_prefers_markers(tmp_path: Path) -> None:
    root = tmp_path / "APPROOT"
    nested = root / "a" / "b" / "c"
    nested.mkdir(parents=True, exist_ok=True)
    (root / "run_gui.py").write_text("\n", encoding="utf-8")

    assert util.find_app_root(nested) == root


def test_default_projects_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CUESHEET_PROJECTS_DIR", str(tmp_path / "mine"))
    assert util.default_projects_dir() == tmp_path / "mine"

    monkeypatch.delenv("CUESHEET_PROJECTS_DIR")
    monkeypatch.setattr(util, "find_app_root", lambda _start=None: tmp_path)
    assert util.default_projects_dir() == tmp_path / "projects"
