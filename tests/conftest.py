from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from cuesheet_tool.collaborators import DocumentPayload, LoadedDocument
from cuesheet_tool.cues import Cue, ProjectInfo, make_cue
from cuesheet_tool.fields import FieldSource


def make_rows(n: int, prefix: str = "c", **values: str) -> tuple:
    """n cues with ids <prefix>0..<prefix>{n-1}; every cue gets `values`."""
    return tuple(
        make_cue(f"{prefix}{i}", order_index=i, track_name=f"Track {i}", **values) for i in range(n)
    )


def sample_rows() -> tuple:
    """A small, realistic sheet: mixed sources, one library match, one complete row."""
    return (
        make_cue("c0", order_index=0, track_name="Opening Titles", duration="0:32", source="APM",
                 composer="Jane Doe", publisher="APM Music"),
        make_cue("c1", order_index=1, track_name="Chase", duration="1:10", source="APM", label="APM Library"),
        make_cue("c2", order_index=2, track_name="Sunrise", duration="0:45", source="BMG",
                 composer="Ann Lee", publisher="BMG Rights", label="BMG Production Music"),
        make_cue("c3", order_index=3, track_name="Night Drive", duration="2:01", source="BMG"),
        make_cue("c4", order_index=4, track_name="Credits", duration="0:58"),
    )


class FrameQueue:
    """Frame scheduler stand-in: callbacks run only when `run()` is called."""

    def __init__(self) -> None:
        self.pending: List[Callable[[], None]] = []

    def __call__(self, cb: Callable[[], None]) -> None:
        self.pending.append(cb)

    def run(self) -> int:
        cbs, self.pending = self.pending, []
        for cb in cbs:
            cb()
        return len(cbs)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryStore:
    """In-memory BackingStore with switchable failure modes."""

    def __init__(self, docs: Optional[Dict[str, LoadedDocument]] = None) -> None:
        self.docs: Dict[str, LoadedDocument] = dict(docs or {})
        self.saved: List[DocumentPayload] = []
        self.fail_with: Optional[Exception] = None
        self.return_false = False

    def add(self, project_id: str, rows: tuple = (), name: str = "") -> None:
        self.docs[project_id] = LoadedDocument(
            rows=tuple(rows), project_info=ProjectInfo(project_name=name or project_id), name=name or project_id
        )

    def load_document(self, project_id: str) -> LoadedDocument:
        if project_id not in self.docs:
            raise KeyError(project_id)
        return self.docs[project_id]

    def save_document(self, project_id: str, payload: DocumentPayload) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        if self.return_false:
            return False
        self.saved.append(payload)
        return True


class RecordingLibrary:
    def __init__(self) -> None:
        self.saved: List[tuple[Cue, FieldSource]] = []
        self.forgotten: List[Cue] = []

    def save_track(self, cue: Cue, data_source: FieldSource) -> None:
        self.saved.append((cue, data_source))

    def forget_track(self, cue: Cue) -> None:
        self.forgotten.append(cue)


@pytest.fixture
def frames() -> FrameQueue:
    return FrameQueue()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def library() -> RecordingLibrary:
    return RecordingLibrary()
