"""Field suggestions for rows that are missing a value.

The core never fills anything on its own: `build_request` describes which
selected rows lack a field, a `SuggestionProvider` ranks candidate values,
and only a candidate the user explicitly picks is written back (as one
batch, through `apply_suggestion`).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from .collaborators import SuggestionCandidate, SuggestionProvider, SuggestionRequest
from .cues import Cue
from .fields import Field, FieldSource, FieldUpdate
from .row_store import RowMutation, RowStore
from .util import has_content, normalize_text

_LOG = logging.getLogger("cuesheet_tool.suggestions")

SIBLING_CONFIDENCE = 0.75
SHEET_CONFIDENCE = 0.5
SHEET_FALLBACK_LIMIT = 3

# Fields the suggestion panel offers to fill.
SUGGESTIBLE_FIELDS = (Field.ARTIST, Field.COMPOSER, Field.PUBLISHER, Field.SOURCE, Field.LABEL)

_PLACEHOLDERS = {"-", "n/a"}


def needs_value(value: str) -> bool:
    v = str(value or "").strip()
    return not v or v.lower() in _PLACEHOLDERS


def share_common_root(a: str, b: str) -> bool:
    """Loose library/publisher match: containment or a shared 5-char prefix."""
    x, y = normalize_text(a), normalize_text(b)
    if not x or not y:
        return False
    if x in y or y in x:
        return True
    return len(x) > 5 and len(y) > 5 and x[:5] == y[:5]


def missing_fields(rows: Iterable[Cue]) -> List[tuple[Field, int]]:
    """(field, how many of `rows` lack it) for each suggestible field."""
    rows = list(rows)
    out: List[tuple[Field, int]] = []
    for f in SUGGESTIBLE_FIELDS:
        n = sum(1 for c in rows if not has_content(c.value(f)))
        if n:
            out.append((f, n))
    return out


def build_request(
    field: Field,
    row_ids: Sequence[str],
    rows: Sequence[Cue],
    document_id: str = "",
) -> Optional[SuggestionRequest]:
    """Request suggestions for the rows in `row_ids` that lack `field`.

    Returns None when every one of those rows already has a value.
    """
    wanted = set(row_ids)
    targets = tuple(c.id for c in rows if c.id in wanted and needs_value(c.value(field)))
    if not targets:
        return None
    return SuggestionRequest(field=field, row_ids=targets, rows=tuple(rows), document_id=str(document_id or ""))


def _match_reason(track: Cue, other: Cue) -> Optional[str]:
    src_a, src_b = track.value(Field.SOURCE), other.value(Field.SOURCE)
    if src_a and src_b and normalize_text(src_a) == normalize_text(src_b):
        return "the same source"
    if share_common_root(track.value(Field.LABEL), other.value(Field.LABEL)):
        return "the same library"
    if share_common_root(track.value(Field.PUBLISHER), other.value(Field.PUBLISHER)):
        return "the same publisher"
    return None


class SiblingSuggestionProvider:
    """Suggests values already used elsewhere in the same sheet.

    Rows that share a source, library or publisher with a target row come
    first; when there are none, the most common values in the sheet are
    offered instead.
    """

    def suggest(self, request: SuggestionRequest) -> List[SuggestionCandidate]:
        field = request.field
        targets = set(request.row_ids)
        by_id = {c.id: c for c in request.rows}
        donors = [c for c in request.rows if c.id not in targets and has_content(c.value(field))]

        out: List[SuggestionCandidate] = []
        seen: set[str] = set()
        for rid in request.row_ids:
            track = by_id.get(rid)
            if track is None:
                continue
            for other in donors:
                reason = _match_reason(track, other)
                value = other.value(field)
                if reason is None or value in seen:
                    continue
                seen.add(value)
                name = other.value(Field.TRACK_NAME)
                out.append(
                    SuggestionCandidate(
                        value=value,
                        confidence=SIBLING_CONFIDENCE,
                        reasoning=f'Track "{name}" has {reason}',
                        source="sibling",
                    )
                )
        if out:
            return out

        counts = Counter(c.value(field) for c in donors)
        for value, n in counts.most_common(SHEET_FALLBACK_LIMIT):
            verb = "uses" if n == 1 else "use"
            out.append(
                SuggestionCandidate(
                    value=value,
                    confidence=SHEET_CONFIDENCE,
                    reasoning=f"{n} track{'s' if n != 1 else ''} in this cue sheet {verb} this value",
                    source="cuesheet",
                )
            )
        return out


def rank(request: SuggestionRequest, providers: Sequence[SuggestionProvider]) -> List[SuggestionCandidate]:
    """Merge candidates from several providers: first provider wins a value, then sort by confidence."""
    merged: List[SuggestionCandidate] = []
    seen: set[str] = set()
    for p in providers:
        try:
            cands = list(p.suggest(request))
        except Exception as e:
            _LOG.warning("Suggestion provider %s failed: %s", type(p).__name__, e)
            continue
        for c in cands:
            if c.value in seen:
                continue
            seen.add(c.value)
            merged.append(c)
    merged.sort(key=lambda c: c.confidence, reverse=True)
    return merged


def apply_suggestion(store: RowStore, request: SuggestionRequest, candidate: SuggestionCandidate) -> int:
    """Write an explicitly chosen candidate to every row in the request, as one batch.

    A candidate whose source is "user" (a value typed into the suggestion
    panel) is written as a plain user edit; picked suggestions are written as
    user-approved.
    """
    value = str(candidate.value or "").strip()
    if not value:
        return 0
    src = FieldSource.USER if candidate.source == "user" else FieldSource.USER_APPROVED
    upd = FieldUpdate(value=value, source=src, confidence=1.0)
    return store.apply_batch([RowMutation(rid, {request.field: upd}) for rid in request.row_ids])


def custom_candidate(value: str) -> SuggestionCandidate:
    return SuggestionCandidate(
        value=str(value or "").strip(),
        confidence=1.0,
        reasoning="Custom value entered by user",
        source="user",
    )
