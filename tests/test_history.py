from __future__ import annotations

import pytest

from cuesheet_tool.cues import make_cue
from cuesheet_tool.documents import Document, WorkingState
from cuesheet_tool.fields import Field, FieldSource
from cuesheet_tool.history import HistoryManager


def _snap(i: int) -> tuple:
    return (f"state-{i}",)


def test_seed_records_baseline_once() -> None:
    h = HistoryManager()
    assert h.seed(_snap(0))
    assert h.seed(_snap(1)) is False
    assert h.index == 0
    assert h.current == _snap(0)
    assert not h.can_undo and not h.can_redo


def test_record_dedupes_against_cursor() -> None:
    h = HistoryManager()
    h.seed(_snap(0))
    assert h.record(_snap(0)) is False
    assert h.record(_snap(1))
    assert h.record(_snap(1)) is False
    assert len(h) == 2


def test_capacity_drops_oldest() -> None:
    h = HistoryManager(capacity=50)
    h.seed(_snap(0))
    for i in range(1, 80):
        h.record(_snap(i))
    assert len(h) == 50
    assert h.index == 49
    assert h.current == _snap(79)
    # Oldest surviving snapshot is 79 - 49.
    for _ in range(49):
        h.undo()
        h.record(h.current)  # consume the suppress flag like the row store would
    assert h.current == _snap(30)
    assert h.undo() is None


def test_undo_redo_are_inverse() -> None:
    h = HistoryManager()
    h.seed(_snap(0))
    h.record(_snap(1))
    h.record(_snap(2))

    assert h.undo() == _snap(1)
    assert h.record(_snap(1)) is False  # replay is swallowed
    assert h.redo() == _snap(2)
    assert h.record(_snap(2)) is False
    assert h.current == _snap(2)
    assert h.index == 2


def test_new_record_truncates_redo_branch() -> None:
    h = HistoryManager()
    h.seed(_snap(0))
    h.record(_snap(1))
    h.record(_snap(2))
    h.undo()
    h.record(_snap(1))
    assert h.can_redo
    h.record(_snap(9))
    assert not h.can_redo
    assert len(h) == 3
    assert h.current == _snap(9)


def test_boundaries_are_noops() -> None:
    h = HistoryManager()
    assert h.undo() is None and h.redo() is None
    h.seed(_snap(0))
    assert h.undo() is None
    assert h.redo() is None
    # No suppress flag was armed by the no-ops.
    assert h.record(_snap(1))


def test_state_round_trip_is_verbatim_and_copied() -> None:
    h = HistoryManager()
    h.seed(_snap(0))
    h.record(_snap(1))
    h.undo()
    snaps, idx = h.state()
    snaps.append(_snap(99))  # caller mutation must not leak back
    restored = HistoryManager.from_state(h.state()[0], idx)
    assert restored.state() == h.state()
    assert restored.index == 0
    assert restored.can_redo


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistoryManager(capacity=0)


def test_working_state_keeps_only_the_last_fifty_edits() -> None:
    ws = WorkingState(Document(id="tab-1", project_id="p1", rows=(make_cue("c0", track_name="Intro"),)))
    for i in range(1, 61):
        assert ws.rows.set_field("c0", Field.COMPOSER, f"v{i}", FieldSource.USER)
    assert len(ws.history) == 50

    seen = []
    results = []
    for _ in range(51):
        results.append(ws.undo())
        seen.append(ws.rows.get_row("c0").value(Field.COMPOSER))
    assert results.count(True) == 49
    assert results[-2:] == [False, False]
    assert seen[48] == "v11"
    assert "v10" not in seen and "" not in seen

    # The undo replays were not recorded as new edits.
    assert len(ws.history) == 50
    assert ws.redo()
    assert ws.rows.get_row("c0").value(Field.COMPOSER) == "v12"
