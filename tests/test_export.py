from __future__ import annotations

import csv

from cuesheet_tool.cues import ProjectInfo, make_cue
from cuesheet_tool.export import CsvExporter, build_export_payload, export_rows


def _rows() -> tuple:
    return (
        make_cue("b", order_index=1, track_name="Second", composer="Ann"),
        make_cue("a", order_index=0, track_name="First", composer="Jane", publisher="APM"),
        make_cue("h", order_index=2, track_name="Hidden").with_hidden(True),
        make_cue("c", order_index=3, track_name="Third"),
    )


def test_payload_is_in_display_order_without_hidden_rows() -> None:
    payload = build_export_payload(_rows(), ProjectInfo(project_name="Spot"))
    assert [c.id for c in payload.rows] == ["a", "b", "c"]
    assert payload.project_info.project_name == "Spot"


def test_export_rows_numbers_visible_rows_from_one() -> None:
    header, rows = export_rows(build_export_payload(_rows()))
    assert header[0] == "#"
    assert "Track Name" in header and "Composer" in header
    assert "" not in header
    assert [r["#"] for r in rows] == ["1", "2", "3"]
    assert rows[0]["Publisher"] == "APM"
    assert rows[2]["Track Name"] == "Third"


def test_csv_exporter_writes_header_and_rows(tmp_path) -> None:
    out = tmp_path / "sub" / "cues.csv"
    path = CsvExporter(out).export(build_export_payload(_rows()))
    assert path == out
    with out.open(encoding="utf-8", newline="") as f:
        data = list(csv.DictReader(f))
    assert [r["Track Name"] for r in data] == ["First", "Second", "Third"]
    assert data[1]["Composer"] == "Ann"


def test_csv_exporter_reports_failure(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    assert CsvExporter(blocker / "out.csv").export(build_export_payload(_rows())) is None
