"""Session wiring used by both the desktop shell and the CLI.

`CueSheetController` owns the document manager, the auto-saver and the
optional collaborators, and turns key presses into engine calls. It knows
nothing about widgets: the Qt shell translates its key events into
`handle_key(key, ctrl=..., shift=...)` calls and shows whatever the
notifier reports.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .autosave import AutoSaver
from .collaborators import (
    BackingStore,
    ExportPayload,
    Exporter,
    SuggestionCandidate,
    SuggestionProvider,
    SuggestionRequest,
    TrackLibrary,
)
from .columns import DEFAULT_SCHEMA, ColumnSchema
from .constants import HISTORY_CAPACITY, MAX_TABS
from .cues import ProjectInfo
from .documents import Document, DocumentManager, WorkingState
from .editing import UpdatePrompt
from .errors import CueSheetError
from .fields import Field
from .selection import FrameScheduler
from .suggestions import SiblingSuggestionProvider, build_request, rank

_LOG = logging.getLogger("cuesheet_tool.controller")

# (title, message) for non-fatal warnings shown to the user.
Notifier = Callable[[str, str], None]

KEY_ESCAPE = "escape"
KEY_DELETE = "delete"
KEY_BACKSPACE = "backspace"
KEY_ENTER = "enter"

_KEY_ALIASES = {"esc": KEY_ESCAPE, "del": KEY_DELETE, "return": KEY_ENTER}


def _log_notifier(title: str, message: str) -> None:
    _LOG.warning("%s: %s", title, message)


class CueSheetController:
    def __init__(
        self,
        store: Optional[BackingStore] = None,
        *,
        library: Optional[TrackLibrary] = None,
        exporter: Optional[Exporter] = None,
        suggestion_providers: Optional[Sequence[SuggestionProvider]] = None,
        frame_scheduler: Optional[FrameScheduler] = None,
        notifier: Optional[Notifier] = None,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        max_tabs: int = MAX_TABS,
        history_capacity: int = HISTORY_CAPACITY,
        autosave_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.documents = DocumentManager(
            store,
            max_tabs=max_tabs,
            history_capacity=history_capacity,
            schema=schema,
            library=library,
            frame_scheduler=frame_scheduler,
        )
        self._exporter = exporter
        self._notify = notifier or _log_notifier
        if suggestion_providers is None:
            suggestion_providers = [SiblingSuggestionProvider()]
        self._providers: List[SuggestionProvider] = list(suggestion_providers)
        self._pending_prompt: Optional[UpdatePrompt] = None
        self.autosaver: Optional[AutoSaver] = None
        if store is not None:
            self.autosaver = AutoSaver(
                self.documents,
                store,
                delay_seconds=autosave_delay,
                clock=clock,
                on_failure=self._on_save_failed,
            )

    # -- accessors -----------------------------------------------------------

    @property
    def working(self) -> Optional[WorkingState]:
        return self.documents.working

    def _on_save_failed(self, tab_id: str, message: str) -> None:
        doc = self.documents.get(tab_id)
        name = doc.name if doc is not None else tab_id
        self._notify("Save failed", f"Could not save \"{name}\": {message}")

    # -- documents -----------------------------------------------------------

    def open_project(self, project_id: str, name: Optional[str] = None) -> Optional[Document]:
        try:
            return self.documents.open(project_id, name)
        except CueSheetError as e:
            self._notify("Cannot open project", str(e))
            return None

    def new_project(
        self,
        project_id: str,
        name: str = "",
        rows: Sequence = (),
        project_info: Optional[ProjectInfo] = None,
    ) -> Optional[Document]:
        try:
            return self.documents.new_document(project_id, rows, project_info, name)
        except CueSheetError as e:
            self._notify("Cannot create project", str(e))
            return None

    def switch_tab(self, tab_id: str) -> bool:
        return self.documents.switch(tab_id)

    def close_tab(self, tab_id: str) -> bool:
        # Flush a pending debounced save so closing never drops edits.
        doc = self.documents.get(tab_id)
        if doc is not None and doc.is_dirty and self.autosaver is not None:
            self.autosaver.save_now(tab_id)
        return self.documents.close(tab_id)

    # -- history -------------------------------------------------------------

    def undo(self) -> bool:
        ws = self.working
        return bool(ws is not None and ws.undo())

    def redo(self) -> bool:
        ws = self.working
        return bool(ws is not None and ws.redo())

    # -- keyboard ------------------------------------------------------------

    def handle_key(self, key: str, *, ctrl: bool = False, shift: bool = False) -> bool:
        """Dispatch one key press. Returns True when the key was consumed.

        `ctrl` covers both Ctrl and the macOS Command key.
        """
        ws = self.working
        if ws is None:
            return False
        k = str(key or "").strip().lower()
        k = _KEY_ALIASES.get(k, k)
        editing = ws.editor.is_editing

        if ctrl:
            if editing:
                return False  # the cell editor has its own text undo
            if k == "z":
                return self.redo() if shift else self.undo()
            if k == "y":
                return self.redo()
            if k == "a":
                return ws.selection.select_all()
            if k == "s":
                return self.save_now()
            return False

        if k == KEY_ESCAPE:
            if editing:
                ws.editor.cancel_edit()
                return True
            if ws.editor.fill.active:
                ws.editor.fill.cancel()
                return True
            had = ws.selection.selection is not None
            ws.selection.clear()
            return had
        if k == KEY_ENTER:
            if not editing:
                return False
            res = ws.editor.commit_edit()
            if res.prompt is not None:
                self._pending_prompt = res.prompt
            return True
        if k in (KEY_DELETE, KEY_BACKSPACE):
            if editing or ws.selection.selection is None:
                return False
            ws.editor.clear_selection_cells()
            return True
        return False

    def take_update_prompt(self) -> Optional[UpdatePrompt]:
        """Return (and forget) the library-update prompt raised by the last Enter commit."""
        p, self._pending_prompt = self._pending_prompt, None
        return p

    # -- suggestions ---------------------------------------------------------

    def suggestions_for(self, field: Field) -> tuple[Optional[SuggestionRequest], List[SuggestionCandidate]]:
        ws = self.working
        if ws is None:
            return None, []
        fin = ws.selection.finalized()
        req = build_request(field, fin.row_ids, ws.rows.rows, document_id=ws.document_id)
        if req is None:
            return None, []
        return req, rank(req, self._providers)

    def apply_suggestion(self, request: SuggestionRequest, candidate: SuggestionCandidate) -> int:
        ws = self.working
        if ws is None:
            return 0
        if request.document_id != ws.document_id:
            _LOG.debug("Dropping suggestion for %s (tab is not live)", request.document_id or "?")
            return 0
        return ws.editor.apply_suggestion(request, candidate)

    # -- persistence / export ------------------------------------------------

    def tick(self) -> int:
        return 0 if self.autosaver is None else self.autosaver.tick()

    def save_now(self) -> bool:
        if self.autosaver is None:
            return False
        return self.autosaver.save_now()

    def shutdown(self) -> int:
        return 0 if self.autosaver is None else self.autosaver.flush_all()

    def export_payload(self) -> Optional[ExportPayload]:
        return self.documents.export_payload()

    def export(self, exporter: Optional[Exporter] = None) -> Optional[Path]:
        exp = exporter or self._exporter
        payload = self.export_payload()
        if exp is None or payload is None:
            return None
        try:
            out = exp.export(payload)
        except Exception as e:
            _LOG.error("Export failed: %s", e)
            self._notify("Export failed", str(e))
            return None
        if out is None:
            self._notify("Export failed", "The exporter did not produce a file.")
        return out
