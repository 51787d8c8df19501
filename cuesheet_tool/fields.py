"""Per-field provenance: value + confidence + source tag.

Every cue field is stored as a `FieldState`. A value is never written without
its confidence and source, so the triple is the unit of mutation too
(`FieldUpdate`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Field(str, Enum):
    TRACK_NAME = "track_name"
    DURATION = "duration"
    ARTIST = "artist"
    SOURCE = "source"
    TRACK_NUMBER = "track_number"
    COMPOSER = "composer"
    PUBLISHER = "publisher"
    LABEL = "label"
    USE = "use"


# Storage order inside a Cue; must list every Field exactly once.
FIELD_ORDER: tuple[Field, ...] = tuple(Field)

REQUIRED_FIELDS: tuple[Field, ...] = (Field.COMPOSER, Field.PUBLISHER)


class FieldSource(str, Enum):
    UNSET = "unset"
    FILE_IMPORT = "file_import"
    FILENAME_PARSE = "filename_parse"
    USER = "user"
    USER_APPROVED = "user_approved"
    USER_EDIT = "user_edit"  # user edit pushed back to the track library
    LEARNED_DB = "learned_db"
    PATTERN = "pattern"
    AI_EXTRACTED = "ai_extracted"
    USER_FILL = "user_fill"
    DEFAULT = "default"


# Sources that count as "a person looked at this value".
TRUSTED_SOURCES = frozenset(
    {FieldSource.USER, FieldSource.USER_APPROVED, FieldSource.USER_EDIT, FieldSource.USER_FILL}
)


class CueStatus(str, Enum):
    PENDING = "pending"
    NEEDS_APPROVAL = "needs_approval"
    COMPLETE = "complete"


def clamp_confidence(value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if v != v:  # NaN
        return 0.0
    return max(0.0, min(1.0, v))


def coerce_source(value: object, default: FieldSource = FieldSource.UNSET) -> FieldSource:
    """Map a persisted source tag onto FieldSource; unknown tags fall back to `default`."""
    if isinstance(value, FieldSource):
        return value
    try:
        return FieldSource(str(value or "").strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class FieldState:
    value: str = ""
    confidence: float = 1.0
    source: FieldSource = FieldSource.UNSET

    @property
    def is_empty(self) -> bool:
        return not self.value.strip()

    @property
    def needs_approval(self) -> bool:
        """Filled by a machine with less than full confidence and not yet confirmed."""
        return (not self.is_empty) and self.confidence < 1.0 and self.source not in TRUSTED_SOURCES


@dataclass(frozen=True)
class FieldUpdate:
    """One field write. Value, confidence and source always travel together."""

    value: str
    source: FieldSource
    confidence: float = 1.0

    def to_state(self) -> FieldState:
        return FieldState(
            value=str(self.value if self.value is not None else ""),
            confidence=clamp_confidence(self.confidence),
            source=self.source,
        )


def field_from_key(key: str) -> Optional[Field]:
    """Resolve a column key (or the camelCase key used by older project files)."""
    k = str(key or "").strip()
    try:
        return Field(k)
    except ValueError:
        pass
    return _CAMEL_KEYS.get(k)


_CAMEL_KEYS = {
    "trackName": Field.TRACK_NAME,
    "trackNumber": Field.TRACK_NUMBER,
}
