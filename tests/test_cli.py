from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

import cuesheet_tool.cli as cli
from cuesheet_tool.collaborators import DocumentPayload
from cuesheet_tool.cues import ProjectInfo, make_cue
from cuesheet_tool.project_store import JsonProjectStore


def _seed(root: Path) -> None:
    rows = (
        make_cue("c0", order_index=0, track_name="Intro", composer="Jane", publisher="APM Music"),
        make_cue("c1", order_index=1, track_name="Bumper").with_hidden(True),
        make_cue("c2", order_index=2, track_name="Outro", composer="Ann"),
    )
    info = ProjectInfo(project_name="Spot A", spot_title="Summer", type="TV")
    JsonProjectStore(root).save_document("spot-a", DocumentPayload("spot-a", rows, info))


def test_cli_list_empty_and_populated(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--projects-dir", str(tmp_path), "list"]) == 0
    assert "No projects" in capsys.readouterr().out

    _seed(tmp_path)
    assert cli.main(["--projects-dir", str(tmp_path), "list"]) == 0
    out = capsys.readouterr().out
    assert "spot-a: Spot A" in out
    assert "[1/3 complete]" in out

    assert cli.main(["--projects-dir", str(tmp_path), "list", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data[0]["project_id"] == "spot-a"
    assert data[0]["row_count"] == 3


def test_cli_show_human_and_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _seed(tmp_path)
    assert cli.main(["--projects-dir", str(tmp_path), "show", "spot-a"]) == 0
    out = capsys.readouterr().out
    assert "SHOW" in out
    assert "Spot title:   Summer" in out
    assert "[complete] Intro" in out
    assert "Bumper (hidden)" in out

    assert cli.main(["--projects-dir", str(tmp_path), "show", "spot-a", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["projectInfo"]["spotTitle"] == "Summer"
    assert [c["id"] for c in data["cues"]] == ["c0", "c1", "c2"]


def test_cli_show_missing_project(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--projects-dir", str(tmp_path), "show", "nope"]) == 2
    assert "No such project" in capsys.readouterr().out
    assert cli.main(["--projects-dir", str(tmp_path), "show", "../x"]) == 2


def test_cli_export_skips_hidden_rows(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _seed(tmp_path)
    out_csv = tmp_path / "out" / "spot.csv"
    assert cli.main(["--projects-dir", str(tmp_path), "export", "spot-a", "--out", str(out_csv)]) == 0
    assert "Exported 2 cues" in capsys.readouterr().out
    with out_csv.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["Track Name"] for r in rows] == ["Intro", "Outro"]
    assert [r["#"] for r in rows] == ["1", "2"]


def test_cli_new_creates_once(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--projects-dir", str(tmp_path), "new", "fresh", "--name", "Fresh Spot"]) == 0
    assert "Created project fresh (Fresh Spot)" in capsys.readouterr().out
    assert (tmp_path / "fresh.json").is_file()
    assert cli.main(["--projects-dir", str(tmp_path), "new", "fresh"]) == 2
    assert "already exists" in capsys.readouterr().out


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
