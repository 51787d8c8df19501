from __future__ import annotations

from typing import Callable, Optional


class CueSheetError(RuntimeError):
    """Base class for recoverable, user-reportable editor errors."""

    pass


class TabCapacityError(CueSheetError):
    """Raised when opening another document would exceed the tab limit."""

    def __init__(self, max_tabs: int) -> None:
        super().__init__(f"Maximum {int(max_tabs)} tabs open")
        self.max_tabs = int(max_tabs)


class DocumentLoadError(CueSheetError):
    """The backing store could not produce the requested project."""

    pass


class CancelledError(Exception):
    pass


class CancelToken:
    """Lightweight cancellation token.

    You can pass either an explicit token (and call cancel()), or provide a
    check callable that returns True when cancellation is requested.
    """

    def __init__(self, check: Optional[Callable[[], bool]] = None) -> None:
        self._cancelled = False
        self._check = check

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self._check is None:
            return False
        try:
            return bool(self._check())
        except Exception:
            return False

    def raise_if_cancelled(self, message: str = "Cancelled") -> None:
        if self.cancelled():
            raise CancelledError(message)
