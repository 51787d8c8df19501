"""Boundary contracts for the collaborators the editing core talks to.

Implementations live outside the core (cloud sync, lookup services, export
formats). A few small reference implementations ship with the app:
`project_store.JsonProjectStore`, `export.CsvExporter`,
`suggestions.SiblingSuggestionProvider` and `InMemoryAnnotationStore` below.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .cues import Cue, ProjectInfo
from .fields import Field, FieldSource


@dataclass(frozen=True)
class LoadedDocument:
    rows: tuple
    project_info: ProjectInfo
    name: str = ""


@dataclass(frozen=True)
class DocumentPayload:
    """What gets persisted for one document."""

    project_id: str
    rows: tuple
    project_info: ProjectInfo


@dataclass(frozen=True)
class ExportPayload:
    """Rows handed to an exporter: display order, hidden rows removed."""

    rows: tuple
    project_info: ProjectInfo


@runtime_checkable
class BackingStore(Protocol):
    def load_document(self, project_id: str) -> LoadedDocument: ...

    def save_document(self, project_id: str, payload: DocumentPayload) -> bool: ...


@runtime_checkable
class Exporter(Protocol):
    def export(self, payload: ExportPayload) -> Optional[Path]: ...


@runtime_checkable
class TrackLibrary(Protocol):
    """Learned-track database that user approvals and edits feed back into."""

    def save_track(self, cue: Cue, data_source: FieldSource) -> None: ...

    def forget_track(self, cue: Cue) -> None: ...


@dataclass(frozen=True)
class SuggestionRequest:
    """Issued by the core; resolved asynchronously by a SuggestionProvider.

    `document_id` is the tab the request was built for. Row ids only mean
    something inside that tab, so a pick is dropped once it is no longer live.
    """

    field: Field
    row_ids: tuple[str, ...]
    rows: tuple  # snapshot of the rows at request time
    document_id: str = ""


@dataclass(frozen=True)
class SuggestionCandidate:
    value: str
    confidence: float
    reasoning: str = ""
    source: str = ""


@runtime_checkable
class SuggestionProvider(Protocol):
    def suggest(self, request: SuggestionRequest) -> Sequence[SuggestionCandidate]: ...


@dataclass(frozen=True)
class Annotation:
    id: str
    project_id: str
    row_ids: tuple[str, ...]
    color: str
    note: str = ""
    resolved: bool = False


@runtime_checkable
class AnnotationStore(Protocol):
    def list(self, project_id: str) -> List[Annotation]: ...

    def add(self, project_id: str, row_ids: Sequence[str], color: str, note: str = "") -> Annotation: ...

    def update(self, annotation_id: str, *, color: Optional[str] = None, note: Optional[str] = None,
               resolved: Optional[bool] = None) -> Optional[Annotation]: ...

    def remove(self, annotation_id: str) -> bool: ...


@dataclass
class InMemoryAnnotationStore:
    """Annotation store kept in memory; keyed on row-id sets, never on cells."""

    _items: Dict[str, Annotation] = field(default_factory=dict)
    _ids: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1))

    def list(self, project_id: str) -> List[Annotation]:
        return [a for a in self._items.values() if a.project_id == project_id]

    def add(self, project_id: str, row_ids: Sequence[str], color: str, note: str = "") -> Annotation:
        ann = Annotation(
            id=str(next(self._ids)),
            project_id=str(project_id),
            row_ids=tuple(dict.fromkeys(row_ids)),
            color=str(color),
            note=str(note or ""),
        )
        self._items[ann.id] = ann
        return ann

    def update(self, annotation_id: str, *, color: Optional[str] = None, note: Optional[str] = None,
               resolved: Optional[bool] = None) -> Optional[Annotation]:
        ann = self._items.get(annotation_id)
        if ann is None:
            return None
        if color is not None:
            ann = replace(ann, color=str(color))
        if note is not None:
            ann = replace(ann, note=str(note))
        if resolved is not None:
            ann = replace(ann, resolved=bool(resolved))
        self._items[annotation_id] = ann
        return ann

    def remove(self, annotation_id: str) -> bool:
        return self._items.pop(annotation_id, None) is not None

    def for_row(self, project_id: str, row_id: str) -> List[Annotation]:
        return [a for a in self.list(project_id) if row_id in a.row_ids]
