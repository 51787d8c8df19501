"""Cue (row) record and project metadata.

A Cue is a closed, immutable record: the nine track fields are stored as a
tuple of `FieldState` in `FIELD_ORDER`, so snapshots can be shared by the
undo history without copying and compared with `==`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional

from .fields import (
    FIELD_ORDER,
    REQUIRED_FIELDS,
    CueStatus,
    Field,
    FieldSource,
    FieldState,
    FieldUpdate,
    clamp_confidence,
    coerce_source,
)

_FIELD_POS = {f: i for i, f in enumerate(FIELD_ORDER)}
_EMPTY_CELLS = tuple(FieldState() for _ in FIELD_ORDER)


def new_cue_id() -> str:
    return f"cue-{uuid.uuid4().hex[:12]}"


def camel_key(f: Field) -> str:
    head, *rest = f.value.split("_")
    return head + "".join(p.capitalize() for p in rest)


@dataclass(frozen=True)
class Cue:
    id: str
    order_index: int = 0
    hidden: bool = False
    cells: tuple[FieldState, ...] = _EMPTY_CELLS

    def __post_init__(self) -> None:
        if len(self.cells) != len(FIELD_ORDER):
            raise ValueError(f"Cue {self.id!r} needs {len(FIELD_ORDER)} cells, got {len(self.cells)}")

    def cell(self, f: Field) -> FieldState:
        return self.cells[_FIELD_POS[f]]

    def value(self, f: Field) -> str:
        return self.cells[_FIELD_POS[f]].value

    def with_updates(self, updates: Mapping[Field, FieldUpdate]) -> "Cue":
        if not updates:
            return self
        cells = list(self.cells)
        for f, upd in updates.items():
            cells[_FIELD_POS[f]] = upd.to_state()
        return replace(self, cells=tuple(cells))

    def with_hidden(self, hidden: bool) -> "Cue":
        return replace(self, hidden=bool(hidden))

    def with_order(self, order_index: int) -> "Cue":
        return replace(self, order_index=int(order_index))

    @property
    def is_complete(self) -> bool:
        return all(not self.cell(f).is_empty for f in REQUIRED_FIELDS)

    @property
    def status(self) -> CueStatus:
        # Derived on every read; there is no stored status to go stale.
        if self.is_complete:
            return CueStatus.COMPLETE
        if any(c.needs_approval for c in self.cells):
            return CueStatus.NEEDS_APPROVAL
        return CueStatus.PENDING

    @property
    def needs_review(self) -> bool:
        """Composer or publisher came from a lookup and was never approved."""
        return any(self.cell(f).needs_approval for f in REQUIRED_FIELDS)

    @property
    def is_approved(self) -> bool:
        return all(self.cell(f).source == FieldSource.USER_APPROVED for f in REQUIRED_FIELDS)

    @property
    def from_database(self) -> bool:
        return any(self.cell(f).source == FieldSource.LEARNED_DB for f in REQUIRED_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "orderIndex": self.order_index, "hidden": self.hidden}
        for f in FIELD_ORDER:
            c = self.cell(f)
            key = camel_key(f)
            out[key] = c.value
            out[f"{key}Confidence"] = c.confidence
            out[f"{key}Source"] = c.source.value
        out["status"] = self.status.value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, order_index: Optional[int] = None) -> "Cue":
        """Build a Cue from a persisted dict; unknown keys are dropped."""
        cells = []
        for f in FIELD_ORDER:
            key = camel_key(f)
            raw = data.get(key, data.get(f.value, ""))
            value = "" if raw is None else str(raw)
            conf = data.get(f"{key}Confidence", 1.0)
            cells.append(
                FieldState(
                    value=value,
                    confidence=clamp_confidence(1.0 if conf is None else conf),
                    source=coerce_source(
                        data.get(f"{key}Source"),
                        default=FieldSource.FILE_IMPORT if value else FieldSource.UNSET,
                    ),
                )
            )
        idx = order_index if order_index is not None else data.get("orderIndex", 0)
        try:
            idx = int(idx or 0)
        except (TypeError, ValueError):
            idx = 0
        return cls(
            id=str(data.get("id") or new_cue_id()),
            order_index=idx,
            hidden=bool(data.get("hidden", False)),
            cells=tuple(cells),
        )


def make_cue(
    cue_id: Optional[str] = None,
    *,
    order_index: int = 0,
    hidden: bool = False,
    origin: FieldSource = FieldSource.FILE_IMPORT,
    confidence: float = 1.0,
    **values: str,
) -> Cue:
    """Convenience constructor: `make_cue("c1", track_name="Intro", composer="X")`.

    Every given value shares one provenance (`origin`, `confidence`).
    """
    cells = []
    for f in FIELD_ORDER:
        v = values.pop(f.value, None)
        if v is None:
            cells.append(FieldState())
        else:
            cells.append(FieldState(value=str(v), confidence=clamp_confidence(confidence), source=origin))
    if values:
        raise TypeError(f"Unknown cue fields: {', '.join(sorted(values))}")
    return Cue(id=cue_id or new_cue_id(), order_index=order_index, hidden=hidden, cells=tuple(cells))


def _today_prepared() -> str:
    d = date.today()
    return f"{d.month}.{d.day}.{d.strftime('%y')}"


@dataclass(frozen=True)
class ProjectInfo:
    project_name: str = ""
    file_path: str = ""
    project: str = ""
    spot_title: str = ""
    type: str = ""
    date_prepared: str = field(default_factory=_today_prepared)

    def to_dict(self) -> Dict[str, str]:
        return {
            "projectName": self.project_name,
            "filePath": self.file_path,
            "project": self.project,
            "spotTitle": self.spot_title,
            "type": self.type,
            "datePrepared": self.date_prepared,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ProjectInfo":
        d = dict(data or {})
        kwargs = {
            "project_name": str(d.get("projectName", "") or ""),
            "file_path": str(d.get("filePath", "") or ""),
            "project": str(d.get("project", "") or ""),
            "spot_title": str(d.get("spotTitle", "") or ""),
            "type": str(d.get("type", "") or ""),
        }
        if d.get("datePrepared"):
            kwargs["date_prepared"] = str(d["datePrepared"])
        return cls(**kwargs)
