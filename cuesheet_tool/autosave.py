"""Debounced auto-save.

The editing core only marks documents dirty and reports changes. This
scheduler coalesces a burst of changes into one `save_document` call once
the document has been quiet for `delay_seconds`. Something has to call
`tick()` periodically (the Qt shell uses a QTimer); tests pass a fake clock.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from .collaborators import BackingStore
from .constants import AUTOSAVE_DELAY_SECONDS, ENV_AUTOSAVE_SECONDS
from .documents import DocumentManager
from .util import env_float

_LOG = logging.getLogger("cuesheet_tool.autosave")

FailureCallback = Callable[[str, str], None]  # (tab_id, message)


class AutoSaver:
    def __init__(
        self,
        manager: DocumentManager,
        store: BackingStore,
        *,
        delay_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        on_failure: Optional[FailureCallback] = None,
    ) -> None:
        self._manager = manager
        self._store = store
        if delay_seconds is None:
            delay_seconds = env_float(ENV_AUTOSAVE_SECONDS, AUTOSAVE_DELAY_SECONDS)
        self._delay = max(0.0, float(delay_seconds))
        self._clock = clock
        self._on_failure = on_failure
        self._due: Dict[str, float] = {}
        manager.add_change_listener(self.touch)

    @property
    def delay_seconds(self) -> float:
        return self._delay

    def pending(self) -> list[str]:
        return list(self._due)

    def touch(self, tab_id: str) -> None:
        """A document changed: (re)start its quiet-period timer."""
        self._due[tab_id] = self._clock() + self._delay

    def tick(self) -> int:
        """Save every document whose quiet period has elapsed. Returns saves that succeeded."""
        now = self._clock()
        ready = [tid for tid, due in self._due.items() if due <= now]
        saved = 0
        for tid in ready:
            self._due.pop(tid, None)
            if self._save(tid):
                saved += 1
        return saved

    def save_now(self, tab_id: Optional[str] = None) -> bool:
        """Explicit save (Ctrl+S); defaults to the live document."""
        tid = tab_id or self._manager.live_id
        if tid is None:
            return False
        self._due.pop(tid, None)
        return self._save(tid)

    def flush_all(self) -> int:
        """Save every dirty document right away (used on shutdown)."""
        saved = 0
        for doc in self._manager.tabs:
            if doc.is_dirty or doc.id in self._due:
                self._due.pop(doc.id, None)
                if self._save(doc.id):
                    saved += 1
        return saved

    def _save(self, tab_id: str) -> bool:
        payload = self._manager.document_payload(tab_id)
        if payload is None:
            return False  # tab was closed before its save came due
        try:
            ok = bool(self._store.save_document(payload.project_id, payload))
            msg = "" if ok else "The project store reported a failed save."
        except Exception as e:
            ok = False
            msg = str(e) or type(e).__name__
        if ok:
            self._manager.mark_clean(tab_id)
            _LOG.debug("Saved %s (%d rows)", payload.project_id, len(payload.rows))
            return True
        _LOG.warning("Auto-save failed for %s: %s", payload.project_id, msg)
        if self._on_failure is not None:
            self._on_failure(tab_id, msg)
        return False
