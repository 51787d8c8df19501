from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .collaborators import DocumentPayload, LoadedDocument
from .cues import Cue, ProjectInfo
from .errors import DocumentLoadError
from .util import default_projects_dir

_LOG = logging.getLogger("cuesheet_tool.project_store")

FORMAT_VERSION = 1
_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


@dataclass(frozen=True)
class ProjectSummary:
    project_id: str
    name: str
    row_count: int
    complete_count: int
    saved_at: str
    path: Path


def check_project_id(project_id: str) -> str:
    pid = str(project_id or "").strip()
    if not _SAFE_ID.match(pid):
        raise ValueError(f"Invalid project id: {project_id!r} (letters, digits, '.', '_' and '-' only)")
    return pid


class JsonProjectStore:
    """Backing store keeping one `<project_id>.json` per project in a folder."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root) if root is not None else default_projects_dir()

    def path_for(self, project_id: str) -> Path:
        return self.root / f"{check_project_id(project_id)}.json"

    def exists(self, project_id: str) -> bool:
        try:
            return self.path_for(project_id).is_file()
        except ValueError:
            return False

    def _read(self, project_id: str) -> Dict[str, Any]:
        p = self.path_for(project_id)
        if not p.exists():
            raise DocumentLoadError(f"No such project: {project_id}")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except Exception as e:
            raise DocumentLoadError(f"Could not read {p.name}: {e}") from e
        if not isinstance(data, dict):
            raise DocumentLoadError(f"{p.name} is not a project file")
        return data

    def load_document(self, project_id: str) -> LoadedDocument:
        data = self._read(project_id)
        raw_rows = data.get("cues") or []
        if not isinstance(raw_rows, list):
            raise DocumentLoadError(f"{project_id}: 'cues' is not a list")
        rows = tuple(
            Cue.from_dict(r, order_index=i) for i, r in enumerate(raw_rows) if isinstance(r, dict)
        )
        info = ProjectInfo.from_dict(data.get("projectInfo"))
        name = str(data.get("name") or info.project_name or project_id)
        _LOG.debug("Loaded %s: %d rows", project_id, len(rows))
        return LoadedDocument(rows=rows, project_info=info, name=name)

    def save_document(self, project_id: str, payload: DocumentPayload) -> bool:
        p = self.path_for(project_id)
        data = {
            "formatVersion": FORMAT_VERSION,
            "projectId": project_id,
            "name": payload.project_info.project_name or project_id,
            "savedAt": datetime.now().isoformat(timespec="seconds"),
            "projectInfo": payload.project_info.to_dict(),
            "cues": [c.to_dict() for c in payload.rows],
        }
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(p)
        except OSError as e:
            _LOG.warning("Saving %s failed: %s", p, e)
            try:
                tmp.unlink()
            except OSError:
                pass
            return False
        return True

    def create(self, project_id: str, name: str = "") -> LoadedDocument:
        """Write an empty project file. Refuses to overwrite an existing one."""
        if self.exists(project_id):
            raise FileExistsError(f"Project already exists: {project_id}")
        info = ProjectInfo(project_name=name or project_id)
        self.save_document(project_id, DocumentPayload(project_id=project_id, rows=(), project_info=info))
        return LoadedDocument(rows=(), project_info=info, name=info.project_name)

    def list_projects(self) -> List[ProjectSummary]:
        if not self.root.is_dir():
            return []
        out: List[ProjectSummary] = []
        for p in sorted(self.root.glob("*.json")):
            pid = p.stem
            try:
                data = self._read(pid)
                cues = [c for c in (data.get("cues") or []) if isinstance(c, dict)]
                rows = [Cue.from_dict(c) for c in cues]
            except (DocumentLoadError, TypeError, ValueError) as e:
                _LOG.warning("Skipping %s: %s", p.name, e)
                continue
            out.append(
                ProjectSummary(
                    project_id=pid,
                    name=str(data.get("name") or pid),
                    row_count=len(rows),
                    complete_count=sum(1 for c in rows if c.is_complete),
                    saved_at=str(data.get("savedAt") or ""),
                    path=p,
                )
            )
        return out
