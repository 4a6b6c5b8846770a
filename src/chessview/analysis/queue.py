"""Sequential, superseding queue of positions awaiting engine analysis."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from PyQt6.QtCore import QObject, pyqtSignal

from chessview.analysis.models import AnalysisResult, PositionRef

if TYPE_CHECKING:
    from chessview.engine.analyzer import PositionAnalyzer
    from chessview.engine.handshake import EngineHandshake

_LOGGER = logging.getLogger(__name__)


class AnalysisQueue(QObject):
    """Feeds positions to the analyzer one at a time, newest batch wins.

    :meth:`submit` replaces every element that has not started yet. The
    element currently being searched always runs to completion (the engine
    protocol has no abort), after which processing continues with whatever
    batch is pending. Only one processing loop exists at any time.
    """

    progress = pyqtSignal(int, int)  # done, total (current batch)
    idle = pyqtSignal()
    handshake_failed = pyqtSignal()

    __slots__ = (
        "_analyzer",
        "_batch_id",
        "_done",
        "_generation",
        "_handshake",
        "_in_flight",
        "_is_draining",
        "_is_running",
        "_on_result",
        "_pending",
        "_total",
    )

    def __init__(
        self,
        *,
        handshake: EngineHandshake,
        analyzer: PositionAnalyzer,
        on_result: Callable[[AnalysisResult], None],
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._handshake = handshake
        self._analyzer = analyzer
        self._on_result = on_result
        self._pending: deque[PositionRef] = deque()
        self._in_flight: tuple[PositionRef, int] | None = None
        self._batch_id = 0
        self._done = 0
        self._total = 0
        self._is_running = False
        self._is_draining = False
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> PositionRef | None:
        return self._in_flight[0] if self._in_flight is not None else None

    def submit(self, batch: Iterable[PositionRef]) -> None:
        """Replace all not-yet-started work with *batch*."""
        superseded = len(self._pending)
        self._start_batch(batch)
        if superseded:
            _LOGGER.debug("Superseded %d queued positions", superseded)

        if self._is_running:
            return
        self._is_running = True
        generation = self._generation
        self._handshake.ensure_ready(
            lambda ok: self._on_handshake_done(generation, ok)
        )

    def clear(self) -> None:
        """Drop queued positions; a search already in flight still completes."""
        self._start_batch(())

    def reset(self) -> None:
        """Abandon all work, including the search in flight, and stop the loop.

        Used when the engine process is replaced: the next :meth:`submit`
        waits for a fresh handshake before anything is sent.
        """
        self._generation += 1
        self._start_batch(())
        if self._in_flight is not None:
            self._in_flight = None
            self._analyzer.abort()
        self._is_running = False

    # ── Processing loop ──────────────────────────────────────────────────

    def _start_batch(self, batch: Iterable[PositionRef]) -> None:
        self._pending = deque(batch)
        self._batch_id += 1
        self._done = 0
        self._total = len(self._pending)

    def _on_handshake_done(self, generation: int, ok: bool) -> None:
        if generation != self._generation:
            return  # answer for an engine process that has been replaced
        if not ok:
            dropped = len(self._pending)
            self._pending.clear()
            self._is_running = False
            _LOGGER.warning("Engine not ready; dropped %d queued positions", dropped)
            self.handshake_failed.emit()
            return
        self._drain()

    def _drain(self) -> None:
        # Searches that complete synchronously re-enter through
        # _on_analysis_done; the loop below picks their successors up.
        if self._is_draining:
            return
        self._is_draining = True
        try:
            while self._in_flight is None and self._pending:
                position = self._pending.popleft()
                self._in_flight = (position, self._batch_id)
                self._analyzer.analyze(position, self._on_analysis_done)
        finally:
            self._is_draining = False

        if self._in_flight is None and not self._pending and self._is_running:
            self._is_running = False
            _LOGGER.info("Analysis queue idle")
            self.idle.emit()

    def _on_analysis_done(self, result: AnalysisResult) -> None:
        assert self._in_flight is not None
        _position, batch_id = self._in_flight
        self._in_flight = None
        try:
            self._on_result(result)
            if batch_id == self._batch_id:
                self._done += 1
                self.progress.emit(self._done, self._total)
        finally:
            self._drain()
