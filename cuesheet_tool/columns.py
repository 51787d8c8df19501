"""Fixed column schema of the cue table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .fields import Field


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    min_width: int
    editable: bool = False
    selectable: bool = False
    has_confidence: bool = False
    required: bool = False
    optional: bool = False  # shows N/A when empty

    @property
    def field(self) -> Optional[Field]:
        try:
            return Field(self.key)
        except ValueError:
            return None

    @property
    def fillable(self) -> bool:
        return self.selectable and self.editable and self.field is not None


COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("visibility", "", 28),
    ColumnSpec("index", "#", 40),
    ColumnSpec(Field.TRACK_NAME.value, "Track Name", 100, editable=True, selectable=True),
    ColumnSpec(Field.DURATION.value, "Cue Length", 70, editable=True, selectable=True),
    ColumnSpec(Field.ARTIST.value, "Artist", 80, editable=True, selectable=True, optional=True),
    ColumnSpec(Field.SOURCE.value, "Source", 80, editable=True, selectable=True),
    ColumnSpec(Field.TRACK_NUMBER.value, "Track #", 50, editable=True, selectable=True, optional=True),
    ColumnSpec(Field.COMPOSER.value, "Composer", 100, editable=True, selectable=True, has_confidence=True, required=True),
    ColumnSpec(Field.PUBLISHER.value, "Publisher", 100, editable=True, selectable=True, has_confidence=True, required=True),
    ColumnSpec(Field.LABEL.value, "Master/Label/Library", 100, editable=True, selectable=True),
    ColumnSpec(Field.USE.value, "Use", 40, editable=True, selectable=True),
    ColumnSpec("actions", "", 50),
)


class ColumnSchema:
    """Ordered, immutable list of column descriptors with index lookups."""

    def __init__(self, columns: tuple[ColumnSpec, ...] = COLUMNS) -> None:
        self._columns = tuple(columns)
        self._by_key = {c.key: i for i, c in enumerate(self._columns)}

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self):
        return iter(self._columns)

    def __getitem__(self, index: int) -> ColumnSpec:
        return self._columns[index]

    def get(self, index: int) -> Optional[ColumnSpec]:
        if 0 <= index < len(self._columns):
            return self._columns[index]
        return None

    def index_of(self, key: str) -> int:
        """Column index for a key (or Field); -1 when unknown."""
        k = key.value if isinstance(key, Field) else str(key)
        return self._by_key.get(k, -1)

    def is_selectable(self, index: int) -> bool:
        col = self.get(index)
        return bool(col is not None and col.selectable)

    def is_fillable(self, index: int) -> bool:
        col = self.get(index)
        return bool(col is not None and col.fillable)

    def selectable_indices(self) -> list[int]:
        return [i for i, c in enumerate(self._columns) if c.selectable]


DEFAULT_SCHEMA = ColumnSchema()
