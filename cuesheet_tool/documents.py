"""Multi-document (tab) session manager.

Exactly one document is live at a time. Its rows, history, selection and
edit state are materialized into a `WorkingState`; every other document is a
parked `Document` record holding plain immutable data (row tuple, snapshot
list, cursor, scroll position).

Switching builds the incoming `WorkingState` completely, parks the outgoing
one into its record, and then swaps `self._working` in a single assignment,
so rows and history can never belong to different documents.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .collaborators import BackingStore, DocumentPayload, ExportPayload, LoadedDocument, TrackLibrary
from .columns import DEFAULT_SCHEMA, ColumnSchema
from .constants import HISTORY_CAPACITY, MAX_TABS
from .cues import ProjectInfo
from .editing import EditEngine
from .errors import CancelToken, DocumentLoadError, TabCapacityError
from .history import HistoryManager
from .row_store import RowMutation, RowStore
from .selection import FinalizedSelection, FrameScheduler, SelectionEngine

_LOG = logging.getLogger("cuesheet_tool.documents")


def new_tab_id() -> str:
    return f"tab-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class Document:
    id: str
    project_id: str
    name: str = "Untitled"
    rows: tuple = ()
    project_info: ProjectInfo = field(default_factory=ProjectInfo)
    history: List[tuple] = field(default_factory=list)
    history_index: int = -1
    scroll_position: tuple[int, int] = (0, 0)
    is_dirty: bool = False


@dataclass(frozen=True)
class LookupTicket:
    """Handle for one background lookup against the live document."""

    document_id: str
    row_ids: tuple[str, ...]
    token: CancelToken

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled()


class WorkingState:
    """Everything materialized for the live document."""

    def __init__(
        self,
        document: Document,
        *,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        library: Optional[TrackLibrary] = None,
        frame_scheduler: Optional[FrameScheduler] = None,
        history_capacity: int = HISTORY_CAPACITY,
    ) -> None:
        self.document_id = document.id
        self.rows = RowStore(document.rows)
        self.history = HistoryManager.from_state(document.history, document.history_index, history_capacity)
        self.history.seed(self.rows.snapshot())
        self.rows.add_listener(self._record)
        self.project_info = document.project_info
        self.scroll_position = tuple(document.scroll_position)
        self.selection = SelectionEngine(lambda: self.rows.rows, schema, frame_scheduler)
        self.editor = EditEngine(self.rows, self.selection, schema, library)

    def _record(self, rows: tuple, replay: bool) -> None:
        self.history.record(rows)

    def undo(self) -> bool:
        snap = self.history.undo()
        if snap is None:
            return False
        self._restore(snap)
        return True

    def redo(self) -> bool:
        snap = self.history.redo()
        if snap is None:
            return False
        self._restore(snap)
        return True

    def _restore(self, snap: tuple) -> None:
        self.editor.cancel_edit()
        self.editor.fill.cancel()
        self.rows.replace_all(snap, replay=True)
        # Row positions may have shifted; a selection over stale indices is meaningless.
        sel = self.selection.selection
        if sel is not None and sel.max_row >= len(self.rows):
            self.selection.clear()


LiveListener = Callable[[Optional[WorkingState]], None]
DirtyListener = Callable[[str, bool], None]
ChangeListener = Callable[[str], None]
SelectionListener = Callable[[FinalizedSelection], None]


class DocumentManager:
    def __init__(
        self,
        store: Optional[BackingStore] = None,
        *,
        max_tabs: int = MAX_TABS,
        history_capacity: int = HISTORY_CAPACITY,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        library: Optional[TrackLibrary] = None,
        frame_scheduler: Optional[FrameScheduler] = None,
    ) -> None:
        self._store = store
        self._max_tabs = int(max_tabs)
        self._history_capacity = int(history_capacity)
        self._schema = schema
        self._library = library
        self._frame_scheduler = frame_scheduler

        self._docs: List[Document] = []
        self._working: Optional[WorkingState] = None
        self._tickets: Dict[str, List[LookupTicket]] = {}

        self._live_listeners: List[LiveListener] = []
        self._dirty_listeners: List[DirtyListener] = []
        self._change_listeners: List[ChangeListener] = []
        self._selection_listeners: List[SelectionListener] = []

    # -- queries -------------------------------------------------------------

    @property
    def max_tabs(self) -> int:
        return self._max_tabs

    @property
    def tabs(self) -> tuple:
        return tuple(self._docs)

    @property
    def working(self) -> Optional[WorkingState]:
        return self._working

    @property
    def live_id(self) -> Optional[str]:
        return None if self._working is None else self._working.document_id

    @property
    def live_document(self) -> Optional[Document]:
        lid = self.live_id
        return None if lid is None else self.get(lid)

    def get(self, tab_id: str) -> Optional[Document]:
        for d in self._docs:
            if d.id == tab_id:
                return d
        return None

    def find_by_project(self, project_id: str) -> Optional[Document]:
        for d in self._docs:
            if d.project_id == project_id:
                return d
        return None

    def index_of(self, tab_id: str) -> int:
        for i, d in enumerate(self._docs):
            if d.id == tab_id:
                return i
        return -1

    # -- listeners -----------------------------------------------------------

    def add_live_listener(self, cb: LiveListener) -> None:
        self._live_listeners.append(cb)

    def add_dirty_listener(self, cb: DirtyListener) -> None:
        self._dirty_listeners.append(cb)

    def add_change_listener(self, cb: ChangeListener) -> None:
        self._change_listeners.append(cb)

    def add_selection_listener(self, cb: SelectionListener) -> None:
        self._selection_listeners.append(cb)

    # -- lifecycle -----------------------------------------------------------

    def open(self, project_id: str, name: Optional[str] = None) -> Document:
        """Open a project in a tab (or focus its existing tab)."""
        existing = self.find_by_project(project_id)
        if existing is not None:
            self.switch(existing.id)
            return existing
        if len(self._docs) >= self._max_tabs:
            _LOG.warning("open(%s) rejected: %d tabs already open", project_id, len(self._docs))
            raise TabCapacityError(self._max_tabs)

        loaded = self._load(project_id)
        title = loaded.name or loaded.project_info.project_name or name or "Untitled"
        doc = Document(
            id=new_tab_id(),
            project_id=str(project_id),
            name=title,
            rows=tuple(loaded.rows),
            project_info=replace(loaded.project_info, project_name=title),
        )
        return self._add_and_activate(doc)

    def new_document(
        self,
        project_id: str,
        rows: Iterable = (),
        project_info: Optional[ProjectInfo] = None,
        name: str = "",
    ) -> Document:
        """Start a new project in a fresh tab."""
        existing = self.find_by_project(project_id)
        if existing is not None:
            self.switch(existing.id)
            return existing
        if len(self._docs) >= self._max_tabs:
            raise TabCapacityError(self._max_tabs)
        info = project_info or ProjectInfo(project_name=name)
        doc = Document(
            id=new_tab_id(),
            project_id=str(project_id),
            name=name or info.project_name or "Untitled",
            rows=tuple(rows),
            project_info=info,
        )
        return self._add_and_activate(doc)

    def _load(self, project_id: str) -> LoadedDocument:
        if self._store is None:
            return LoadedDocument(rows=(), project_info=ProjectInfo())
        try:
            return self._store.load_document(project_id)
        except DocumentLoadError:
            raise
        except Exception as e:
            _LOG.error("Failed to load project %s: %s", project_id, e)
            raise DocumentLoadError(f"Could not load project {project_id}: {e}") from e

    def _add_and_activate(self, doc: Document) -> Document:
        self._docs.append(doc)
        _LOG.info("Opened tab %s for project %s (%d rows)", doc.id, doc.project_id, len(doc.rows))
        self._activate(doc)
        return doc

    def switch(self, tab_id: str) -> bool:
        if tab_id == self.live_id:
            return False
        doc = self.get(tab_id)
        if doc is None:
            _LOG.debug("switch(%s) ignored: no such tab", tab_id)
            return False
        self._activate(doc)
        return True

    def close(self, tab_id: str) -> bool:
        idx = self.index_of(tab_id)
        if idx < 0:
            return False
        doc = self._docs[idx]
        if doc.id == self.live_id:
            remaining = [d for d in self._docs if d.id != tab_id]
            if remaining:
                # Same position after removal, else the last tab.
                self._activate(remaining[min(idx, len(remaining) - 1)])
            else:
                outgoing = self._working
                if outgoing is not None:
                    self._park(outgoing)
                self._working = None
                self._notify_live()
        self._cancel_tickets(doc.id)
        self._docs.pop(self.index_of(tab_id))
        _LOG.info("Closed tab %s (project %s)", doc.id, doc.project_id)
        return True

    def _activate(self, doc: Document) -> None:
        incoming = WorkingState(
            doc,
            schema=self._schema,
            library=self._library,
            frame_scheduler=self._frame_scheduler,
            history_capacity=self._history_capacity,
        )
        outgoing = self._working
        if outgoing is not None:
            self._park(outgoing)
        incoming.rows.add_listener(self._on_rows_changed)
        incoming.selection.add_listener(self._on_selection)
        self._working = incoming
        self._notify_live()

    def _park(self, ws: WorkingState) -> None:
        ws.rows.remove_listener(self._on_rows_changed)
        ws.editor.cancel_edit()
        ws.editor.fill.cancel()
        ws.selection.clear()
        ws.selection.remove_listener(self._on_selection)
        self._cancel_tickets(ws.document_id)
        doc = self.get(ws.document_id)
        if doc is None:
            return
        doc.rows = ws.rows.snapshot()
        doc.project_info = ws.project_info
        doc.history, doc.history_index = ws.history.state()
        doc.scroll_position = tuple(ws.scroll_position)

    # -- mutation plumbing ---------------------------------------------------

    def _on_rows_changed(self, rows: tuple, replay: bool) -> None:
        ws = self._working
        if ws is None:
            return
        self._set_dirty(ws.document_id, True)
        for cb in list(self._change_listeners):
            cb(ws.document_id)

    def _on_selection(self, fin: FinalizedSelection) -> None:
        for cb in list(self._selection_listeners):
            cb(fin)

    def _notify_live(self) -> None:
        for cb in list(self._live_listeners):
            cb(self._working)

    def _set_dirty(self, tab_id: str, dirty: bool) -> None:
        doc = self.get(tab_id)
        if doc is None or doc.is_dirty == dirty:
            return
        doc.is_dirty = dirty
        for cb in list(self._dirty_listeners):
            cb(tab_id, dirty)

    def mark_clean(self, tab_id: str) -> None:
        """Called by the persistence side after a successful save."""
        self._set_dirty(tab_id, False)

    def set_scroll_position(self, x: int, y: int) -> None:
        if self._working is not None:
            self._working.scroll_position = (int(x), int(y))

    def update_project_info(self, **changes: str) -> bool:
        ws = self._working
        if ws is None:
            return False
        updated = replace(ws.project_info, **changes)
        if updated == ws.project_info:
            return False
        ws.project_info = updated
        self._set_dirty(ws.document_id, True)
        for cb in list(self._change_listeners):
            cb(ws.document_id)
        return True

    def rename(self, tab_id: str, name: str) -> bool:
        doc = self.get(tab_id)
        if doc is None or not str(name).strip():
            return False
        doc.name = str(name).strip()
        return True

    # -- payloads ------------------------------------------------------------

    def document_payload(self, tab_id: str) -> Optional[DocumentPayload]:
        doc = self.get(tab_id)
        if doc is None:
            return None
        ws = self._working
        if ws is not None and ws.document_id == tab_id:
            return DocumentPayload(project_id=doc.project_id, rows=ws.rows.snapshot(), project_info=ws.project_info)
        return DocumentPayload(project_id=doc.project_id, rows=tuple(doc.rows), project_info=doc.project_info)

    def export_payload(self) -> Optional[ExportPayload]:
        ws = self._working
        if ws is None:
            return None
        visible = tuple(c for c in ws.rows.rows if not c.hidden)
        return ExportPayload(rows=visible, project_info=ws.project_info)

    # -- async lookups -------------------------------------------------------

    def begin_lookup(self, row_ids: Sequence[str]) -> Optional[LookupTicket]:
        ws = self._working
        if ws is None:
            return None
        ticket = LookupTicket(document_id=ws.document_id, row_ids=tuple(row_ids), token=CancelToken())
        self._tickets.setdefault(ws.document_id, []).append(ticket)
        return ticket

    def apply_lookup_result(self, ticket: LookupTicket, mutations: Sequence[RowMutation]) -> int:
        """Apply a finished lookup. Ignored unless its document is still live."""
        pending = self._tickets.get(ticket.document_id, [])
        if ticket in pending:
            pending.remove(ticket)
        ws = self._working
        if ticket.cancelled or ws is None or ws.document_id != ticket.document_id:
            _LOG.debug("Dropping lookup result for %s (cancelled or not live)", ticket.document_id)
            return 0
        allowed = set(ticket.row_ids)
        return ws.rows.apply_batch([m for m in mutations if m.row_id in allowed])

    def _cancel_tickets(self, tab_id: str) -> None:
        for t in self._tickets.pop(tab_id, []):
            t.token.cancel()
