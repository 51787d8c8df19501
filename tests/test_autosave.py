from __future__ import annotations

import logging

from cuesheet_tool.autosave import AutoSaver
from cuesheet_tool.documents import DocumentManager
from cuesheet_tool.fields import Field, FieldSource, FieldUpdate
from cuesheet_tool.row_store import RowMutation

from tests.conftest import FakeClock, MemoryStore, make_rows


def _setup(delay: float = 2.0):
    store = MemoryStore()
    store.add("p0", make_rows(2, prefix="a"))
    store.add("p1", make_rows(2, prefix="b"))
    clock = FakeClock()
    failures = []
    dm = DocumentManager(store)
    saver = AutoSaver(dm, store, delay_seconds=delay, clock=clock, on_failure=lambda t, m: failures.append((t, m)))
    return dm, store, saver, clock, failures


def _edit(dm: DocumentManager, row_id: str, value: str) -> None:
    dm.working.rows.apply_batch([RowMutation(row_id, {Field.COMPOSER: FieldUpdate(value, FieldSource.USER)})])


def test_burst_of_edits_is_saved_once_after_quiet_period() -> None:
    dm, store, saver, clock, _ = _setup()
    doc = dm.open("p0")
    _edit(dm, "a0", "1")
    clock.advance(1.5)
    _edit(dm, "a0", "2")
    clock.advance(1.5)
    assert saver.tick() == 0  # the second edit restarted the timer
    clock.advance(0.6)
    assert saver.tick() == 1
    assert len(store.saved) == 1
    assert store.saved[0].rows[0].value(Field.COMPOSER) == "2"
    assert not doc.is_dirty
    assert saver.pending() == []


def test_parked_document_still_saves() -> None:
    dm, store, saver, clock, _ = _setup()
    a = dm.open("p0")
    _edit(dm, "a1", "Parked")
    dm.open("p1")
    clock.advance(5)
    assert saver.tick() == 1
    assert store.saved[0].project_id == "p0"
    assert store.saved[0].rows[1].value(Field.COMPOSER) == "Parked"
    assert not a.is_dirty


def test_failure_keeps_dirty_and_notifies(caplog) -> None:
    dm, store, saver, clock, failures = _setup()
    doc = dm.open("p0")
    _edit(dm, "a0", "x")
    store.fail_with = OSError("disk full")
    clock.advance(5)
    with caplog.at_level(logging.WARNING, logger="cuesheet_tool.autosave"):
        assert saver.tick() == 0
    assert doc.is_dirty
    assert failures == [(doc.id, "disk full")]
    assert "disk full" in caplog.text

    store.fail_with = None
    store.return_false = True
    assert saver.save_now() is False
    assert failures[-1] == (doc.id, "The project store reported a failed save.")
    assert doc.is_dirty


def test_save_now_defaults_to_live_document() -> None:
    dm, store, saver, clock, _ = _setup(delay=60)
    assert saver.save_now() is False  # nothing open
    doc = dm.open("p0")
    _edit(dm, "a0", "now")
    assert saver.save_now()
    assert not doc.is_dirty
    assert saver.pending() == []


def test_flush_all_saves_every_dirty_tab() -> None:
    dm, store, saver, clock, _ = _setup(delay=60)
    dm.open("p0")
    _edit(dm, "a0", "x")
    dm.open("p1")
    _edit(dm, "b0", "y")
    assert saver.flush_all() == 2
    assert sorted(p.project_id for p in store.saved) == ["p0", "p1"]
    assert all(not d.is_dirty for d in dm.tabs)


def test_closed_tab_is_dropped_silently() -> None:
    dm, store, saver, clock, failures = _setup()
    doc = dm.open("p0")
    _edit(dm, "a0", "x")
    dm.close(doc.id)
    clock.advance(5)
    assert saver.tick() == 0
    assert store.saved == []
    assert failures == []
