from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .collaborators import ExportPayload
from .columns import DEFAULT_SCHEMA, ColumnSchema
from .cues import Cue, ProjectInfo

_LOG = logging.getLogger("cuesheet_tool.export")


def build_export_payload(rows: Iterable[Cue], project_info: Optional[ProjectInfo] = None) -> ExportPayload:
    """Rows in display order with hidden rows dropped."""
    ordered = sorted(rows, key=lambda c: c.order_index)
    return ExportPayload(
        rows=tuple(c for c in ordered if not c.hidden),
        project_info=project_info or ProjectInfo(),
    )


def export_rows(payload: ExportPayload, schema: ColumnSchema = DEFAULT_SCHEMA) -> tuple[List[str], List[Dict[str, str]]]:
    """Header labels plus one dict per row (label -> value)."""
    cols = [c for c in schema if c.field is not None]
    header = ["#"] + [c.label for c in cols]
    out: List[Dict[str, str]] = []
    for n, cue in enumerate(payload.rows, start=1):
        rec = {"#": str(n)}
        for c in cols:
            assert c.field is not None
            rec[c.label] = cue.value(c.field)
        out.append(rec)
    return header, out


class CsvExporter:
    """Writes the export payload to a CSV file (UTF-8, one row per cue)."""

    def __init__(self, out_path: Path, schema: ColumnSchema = DEFAULT_SCHEMA) -> None:
        self.out_path = Path(out_path)
        self._schema = schema

    def export(self, payload: ExportPayload) -> Optional[Path]:
        header, rows = export_rows(payload, self._schema)
        path = self.out_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as f:
                w = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
                w.writeheader()
                for r in rows:
                    w.writerow({k: ("" if r.get(k) is None else r.get(k)) for k in header})
        except OSError as e:
            _LOG.error("CSV export to %s failed: %s", path, e)
            return None
        _LOG.info("Exported %d cues to %s", len(rows), path)
        return path
