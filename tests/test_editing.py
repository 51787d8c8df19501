from __future__ import annotations

from cuesheet_tool.columns import DEFAULT_SCHEMA
from cuesheet_tool.cues import make_cue
from cuesheet_tool.documents import Document, WorkingState
from cuesheet_tool.fields import CueStatus, Field, FieldSource, FieldState

from tests.conftest import RecordingLibrary, make_rows

COMPOSER = DEFAULT_SCHEMA.index_of(Field.COMPOSER)
PUBLISHER = DEFAULT_SCHEMA.index_of(Field.PUBLISHER)
SOURCE = DEFAULT_SCHEMA.index_of(Field.SOURCE)
INDEX_COL = DEFAULT_SCHEMA.index_of("index")


def _ws(rows, library=None) -> WorkingState:
    return WorkingState(Document(id="tab-1", project_id="p1", rows=tuple(rows)), library=library)


def _composers(n: int) -> tuple:
    return tuple(
        make_cue(f"c{i}", order_index=i, track_name=f"T{i}", composer=f"Composer {i}", publisher=f"Pub {i}")
        for i in range(n)
    )


def test_delete_clears_rows_2_to_4_composer_in_one_history_entry() -> None:
    ws = _ws(_composers(6))
    original = ws.rows.snapshot()
    assert len(ws.history) == 1

    ws.selection.begin_selection(2, COMPOSER)
    ws.selection.update_selection(4, COMPOSER)
    ws.selection.end_selection()
    assert ws.editor.clear_selection_cells() == 3

    for i in (2, 3, 4):
        cell = ws.rows.get_row(f"c{i}").cell(Field.COMPOSER)
        assert cell == FieldState("", 1.0, FieldSource.USER)
        assert ws.rows.get_row(f"c{i}").status == CueStatus.PENDING
    assert ws.rows.get_row("c1").value(Field.COMPOSER) == "Composer 1"
    assert ws.rows.get_row("c5").value(Field.COMPOSER) == "Composer 5"
    assert len(ws.history) == 2

    assert ws.undo()
    assert ws.rows.snapshot() == original


def test_clear_skips_non_editable_columns() -> None:
    ws = _ws(_composers(2))
    # A drag that starts on a selectable column and sweeps across several.
    ws.selection.begin_selection(0, DEFAULT_SCHEMA.index_of(Field.TRACK_NAME))
    ws.selection.update_selection(1, PUBLISHER)
    ws.selection.end_selection()
    ws.editor.clear_selection_cells()
    for cid in ("c0", "c1"):
        cue = ws.rows.get_row(cid)
        assert cue.value(Field.COMPOSER) == ""
        assert cue.value(Field.LABEL) == ""  # outside the bounds; was empty anyway
    assert ws.editor.clear_selection_cells() == 0  # already blank: nothing changes


def test_clear_without_selection_is_noop() -> None:
    ws = _ws(_composers(2))
    assert ws.editor.clear_selection_cells() == 0
    assert len(ws.history) == 1


def test_fill_bmg_rows_0_to_3() -> None:
    rows = (make_cue("c0", order_index=0, source="BMG"),) + tuple(
        make_cue(f"c{i}", order_index=i, source="APM") for i in range(1, 6)
    )
    ws = _ws(rows)
    anchor_before = ws.rows.get_row("c0")
    fill = ws.editor.fill
    assert fill.begin(0, SOURCE)
    assert fill.value == "BMG"
    assert fill.move(3, SOURCE)
    assert fill.preview_range() == (0, 3)
    assert fill.in_preview(2, SOURCE) and not fill.in_preview(0, SOURCE)

    assert fill.release() == 3
    for i in (1, 2, 3):
        assert ws.rows.get_row(f"c{i}").cell(Field.SOURCE) == FieldState("BMG", 1.0, FieldSource.USER_FILL)
    assert ws.rows.get_row("c0") == anchor_before
    assert ws.rows.get_row("c4").value(Field.SOURCE) == "APM"
    assert not fill.active
    assert len(ws.history) == 2


def test_fill_is_column_local() -> None:
    ws = _ws(make_rows(5, source="APM"))
    fill = ws.editor.fill
    fill.begin(0, SOURCE, value="BMG")
    assert fill.move(3, COMPOSER) is False
    assert fill.preview_range() == (0, 0)
    assert fill.move(2, SOURCE)
    assert not fill.in_preview(1, COMPOSER)
    fill.release()
    for c in ws.rows.rows:
        assert c.value(Field.COMPOSER) == ""


def test_fill_upwards_and_release_on_anchor() -> None:
    ws = _ws(make_rows(4, source="APM"))
    fill = ws.editor.fill
    fill.begin(3, SOURCE, value="KPM")
    fill.move(1, SOURCE)
    assert fill.release() == 2
    assert [c.value(Field.SOURCE) for c in ws.rows.rows] == ["APM", "KPM", "KPM", "APM"]

    fill.begin(2, SOURCE)
    assert fill.release() == 0
    assert fill.begin(0, INDEX_COL) is False
    fill.begin(0, SOURCE)
    fill.move(3, SOURCE)
    fill.cancel()
    assert fill.release() == 0
    assert ws.rows.get_row("c3").value(Field.SOURCE) == "APM"


def test_commit_writes_user_provenance_and_noop_when_unchanged() -> None:
    ws = _ws(make_rows(2, composer="Orig"))
    assert ws.editor.begin_edit("c0", Field.COMPOSER).text == "Orig"
    ws.editor.set_text("New")
    res = ws.editor.commit_edit()
    assert res.written and res.prompt is None
    assert ws.rows.get_row("c0").cell(Field.COMPOSER) == FieldState("New", 1.0, FieldSource.USER)
    assert len(ws.history) == 2

    # Same value again: the cell is already (user, 1.0), so nothing is written.
    assert ws.editor.commit_cell("c0", Field.COMPOSER, "New").written is False
    assert len(ws.history) == 2

    # Same value with other provenance is a confirmation and is written.
    assert ws.editor.commit_cell("c1", Field.COMPOSER, "Orig").written
    assert ws.rows.get_row("c1").cell(Field.COMPOSER).source == FieldSource.USER


def test_cancel_edit_discards_text() -> None:
    ws = _ws(make_rows(1, composer="Orig"))
    ws.editor.begin_edit("c0", Field.COMPOSER)
    ws.editor.set_text("typed")
    assert ws.editor.cancel_edit()
    assert ws.editor.commit_edit().written is False
    assert ws.rows.get_row("c0").value(Field.COMPOSER) == "Orig"


def test_library_row_edit_raises_update_prompt() -> None:
    lib = RecordingLibrary()
    row = make_cue("c0", track_name="Hit", composer="Old", publisher="P",
                   origin=FieldSource.LEARNED_DB, confidence=0.9)
    ws = _ws((row,), library=lib)

    res = ws.editor.commit_cell("c0", Field.COMPOSER, "Fixed")
    assert res.written is False
    prompt = res.prompt
    assert prompt is not None
    assert (prompt.old_value, prompt.new_value, prompt.track_name) == ("Old", "Fixed", "Hit")
    assert ws.rows.get_row("c0").value(Field.COMPOSER) == "Old"

    assert ws.editor.resolve_update_prompt(prompt, update_library=True)
    cell = ws.rows.get_row("c0").cell(Field.COMPOSER)
    assert cell == FieldState("Fixed", 1.0, FieldSource.USER_EDIT)
    assert len(lib.saved) == 1
    assert lib.saved[0][1] == FieldSource.USER_EDIT


def test_update_prompt_declined_writes_plain_user_edit() -> None:
    lib = RecordingLibrary()
    row = make_cue("c0", composer="Old", origin=FieldSource.LEARNED_DB, confidence=0.9)
    ws = _ws((row,), library=lib)
    prompt = ws.editor.commit_cell("c0", Field.COMPOSER, "Mine").prompt
    ws.editor.resolve_update_prompt(prompt, update_library=False)
    assert ws.rows.get_row("c0").cell(Field.COMPOSER).source == FieldSource.USER
    assert lib.saved == []


def test_blanking_a_library_value_skips_the_prompt() -> None:
    row = make_cue("c0", composer="Old", origin=FieldSource.LEARNED_DB, confidence=0.9)
    ws = _ws((row,))
    res = ws.editor.commit_cell("c0", Field.COMPOSER, "")
    assert res.written and res.prompt is None


def test_approve_and_unapprove_row() -> None:
    lib = RecordingLibrary()
    row = make_cue("c0", composer="C", publisher="P", label="KPM", origin=FieldSource.LEARNED_DB, confidence=0.7)
    ws = _ws((row, make_cue("c1", composer="only")), library=lib)

    assert ws.editor.approve_row("c1") is False  # publisher missing
    assert ws.editor.approve_row("c0")
    cue = ws.rows.get_row("c0")
    assert cue.is_approved
    assert cue.cell(Field.LABEL) == FieldState("KPM", 1.0, FieldSource.USER_APPROVED)
    assert lib.saved[-1][1] == FieldSource.USER_APPROVED

    assert ws.editor.approve_row("c0") is False  # already approved: no change, no library call
    assert len(lib.saved) == 1

    assert ws.editor.unapprove_row("c0")
    cue = ws.rows.get_row("c0")
    assert cue.cell(Field.COMPOSER) == FieldState("C", 0.7, FieldSource.LEARNED_DB)
    assert cue.cell(Field.LABEL).source == FieldSource.LEARNED_DB
    assert lib.forgotten and lib.forgotten[0].id == "c0"


def test_reopening_a_vouched_cell_without_typing_keeps_its_provenance() -> None:
    rows = (
        make_cue("c0", composer="C", publisher="P", origin=FieldSource.LEARNED_DB, confidence=0.7),
        make_cue("c1", composer="Filled", origin=FieldSource.USER_EDIT),
    )
    ws = _ws(rows)
    assert ws.editor.approve_row("c0")
    assert len(ws.history) == 2

    ws.editor.begin_edit("c0", Field.COMPOSER)
    assert ws.editor.commit_edit().written is False
    assert ws.rows.get_row("c0").cell(Field.COMPOSER) == FieldState("C", 1.0, FieldSource.USER_APPROVED)

    ws.editor.begin_edit("c1", Field.COMPOSER)
    assert ws.editor.commit_edit().written is False
    assert ws.rows.get_row("c1").cell(Field.COMPOSER).source == FieldSource.USER_EDIT
    assert len(ws.history) == 2


def test_toggle_hidden_records_history() -> None:
    ws = _ws(make_rows(2))
    assert ws.editor.toggle_hidden("c1")
    assert ws.rows.get_row("c1").hidden
    assert ws.undo()
    assert not ws.rows.get_row("c1").hidden
