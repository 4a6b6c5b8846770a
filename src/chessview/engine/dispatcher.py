"""Fan-out of engine output lines to listeners and one-shot waiters."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from PyQt6.QtCore import QObject, QTimer

_LOGGER = logging.getLogger(__name__)

LineCallback = Callable[[str], None]
LinePredicate = Callable[[str], bool]


@dataclass(slots=True)
class _Waiter:
    predicate: LinePredicate
    on_match: LineCallback
    on_timeout: Callable[[], None]
    timer: QTimer


class LineDispatcher(QObject):
    """Broadcasts each line to every listener, then to the first matching waiter.

    Listeners are passive observers and see every line. Waiters are one-shot:
    the first waiter (in registration order) whose predicate accepts a line
    is removed and resolved with it. A waiter whose deadline passes is
    removed and its ``on_timeout`` is called instead.
    """

    __slots__ = (
        "_listeners",
        "_next_handle",
        "_waiters",
    )

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._listeners: dict[int, LineCallback] = {}
        self._waiters: dict[int, _Waiter] = {}
        self._next_handle = 0

    # ── Listeners ────────────────────────────────────────────────────────

    def add_listener(self, callback: LineCallback) -> int:
        handle = self._new_handle()
        self._listeners[handle] = callback
        return handle

    def remove_listener(self, handle: int) -> None:
        self._listeners.pop(handle, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # ── Waiters ──────────────────────────────────────────────────────────

    def wait_for(
        self,
        predicate: LinePredicate,
        *,
        on_match: LineCallback,
        on_timeout: Callable[[], None],
        timeout_ms: int,
    ) -> int:
        """Register a one-shot waiter and return its handle."""
        handle = self._new_handle()
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._expire(handle))
        self._waiters[handle] = _Waiter(predicate, on_match, on_timeout, timer)
        timer.start(timeout_ms)
        return handle

    def cancel_waiter(self, handle: int) -> None:
        waiter = self._waiters.pop(handle, None)
        if waiter is not None:
            self._dispose_timer(waiter.timer)

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    # ── Dispatch ─────────────────────────────────────────────────────────

    def dispatch(self, line: str) -> None:
        """Deliver *line* to all listeners, then to at most one waiter."""
        for handle, callback in list(self._listeners.items()):
            if handle not in self._listeners:
                continue  # removed by an earlier listener for this line
            try:
                callback(line)
            except Exception:
                _LOGGER.exception("Engine line listener failed on %r", line)

        for handle, waiter in list(self._waiters.items()):
            try:
                matched = waiter.predicate(line)
            except Exception:
                _LOGGER.exception("Engine line predicate failed on %r", line)
                continue
            if not matched:
                continue
            del self._waiters[handle]
            self._dispose_timer(waiter.timer)
            try:
                waiter.on_match(line)
            except Exception:
                _LOGGER.exception("Engine line waiter failed on %r", line)
            return

    def clear(self) -> None:
        """Drop every listener and waiter without resolving them."""
        for waiter in self._waiters.values():
            self._dispose_timer(waiter.timer)
        self._waiters.clear()
        self._listeners.clear()

    # ── Internal ─────────────────────────────────────────────────────────

    def _new_handle(self) -> int:
        self._next_handle += 1
        return self._next_handle

    def _expire(self, handle: int) -> None:
        waiter = self._waiters.pop(handle, None)
        if waiter is None:
            return
        self._dispose_timer(waiter.timer)
        waiter.on_timeout()

    @staticmethod
    def _dispose_timer(timer: QTimer) -> None:
        timer.stop()
        timer.deleteLater()
