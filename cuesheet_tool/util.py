from __future__ import annotations

import json
import os
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, cast

from .constants import ENV_PROJECTS_DIR, PROJECTS_DIRNAME


def to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: to_jsonable(v) for k, v in asdict(cast(Any, obj)).items()}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    return obj


def dumps_pretty(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), indent=2, sort_keys=True, ensure_ascii=False)


def env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def env_float(name: str, default: float) -> float:
    val = os.environ.get(name)
    if val is None or not val.strip():
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


def normalize_text(value: str | None) -> str:
    """Lowercase + strip, used for loose comparisons of library/source names."""
    return str(value or "").strip().lower()


def has_content(value: str | None) -> bool:
    """True when a cell holds something other than blanks or a '-' placeholder."""
    v = str(value or "").strip()
    return bool(v) and v != "-"


def find_app_root(start: Path | None = None) -> Path:
    """Best-effort app root finder.

    Prefers a folder that contains run_gui.py or README.md (portable zip use-case),
    otherwise falls back to the current working directory.
    """
    try:
        cur = (start or Path(__file__).resolve().parent)
        cur = cur if isinstance(cur, Path) else Path(str(cur))
        for _ in range(8):
            if (cur / "run_gui.py").is_file() or (cur / "README.md").is_file():
                return cur
            if cur.parent == cur:
                break
            cur = cur.parent
    except Exception:
        pass
    try:
        return Path.cwd()
    except Exception:
        return Path(__file__).resolve().parent


def default_projects_dir() -> Path:
    """Return the folder used by the JSON project store.

    `CUESHEET_PROJECTS_DIR` wins; otherwise <app_root>/projects.
    """
    override = str(os.environ.get(ENV_PROJECTS_DIR, "") or "").strip()
    if override:
        return Path(override).expanduser()
    try:
        root = find_app_root(Path(__file__).resolve().parent)
    except Exception:
        root = Path.cwd()
    return root / PROJECTS_DIRNAME
