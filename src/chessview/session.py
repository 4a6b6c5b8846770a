"""Engine analysis session orchestration for the UI thread."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from PyQt6.QtCore import QObject, pyqtSignal

from chessview.analysis import (
    AnalysisQueue,
    AnalysisResult,
    PositionRef,
    ResultStore,
    normalize_result,
)
from chessview.config import EngineSettings
from chessview.core.fen import normalize_fen
from chessview.engine import (
    EngineHandshake,
    EngineTransport,
    HandshakeState,
    IEngineTransport,
    PositionAnalyzer,
)

_LOGGER = logging.getLogger(__name__)


def _log_engine_line(line: str) -> None:
    _LOGGER.debug("<< %s", line)


class AnalysisSession(QObject):
    """Owns the engine process and the analysis pipeline for one loaded game.

    Rendering code talks only to this object: it loads a game's positions,
    submits positions for analysis, and reads or subscribes to the result
    snapshot. Engine unavailability and handshake failures are reported as
    ``False`` returns and through :attr:`analysis_failed`, never raised.
    """

    snapshot_changed = pyqtSignal(object)  # Mapping[int, AnalysisResult]
    progress = pyqtSignal(int, int)  # done, total
    analysis_idle = pyqtSignal()
    analysis_failed = pyqtSignal(str)

    __slots__ = (
        "_analyzer",
        "_handshake",
        "_is_started",
        "_is_unavailable",
        "_log_listener",
        "_queue",
        "_settings",
        "_store",
        "_transport",
    )

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transport: IEngineTransport | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or EngineSettings()
        if transport is None:
            transport = EngineTransport(
                self._settings.engine_path,
                self._settings.engine_args,
                start_timeout_ms=self._settings.start_timeout_ms,
                parent=self,
            )
        self._transport = transport

        self._store = ResultStore(self)
        self._handshake = EngineHandshake(
            transport,
            timeout_ms=self._settings.handshake_timeout_ms,
            parent=self,
        )
        self._analyzer = PositionAnalyzer(
            transport,
            depth=self._settings.search_depth,
            timeout_ms=self._settings.search_timeout_ms,
            parent=self,
        )
        self._queue = AnalysisQueue(
            handshake=self._handshake,
            analyzer=self._analyzer,
            on_result=self._on_result,
            parent=self,
        )

        self._store.snapshot_changed.connect(self.snapshot_changed)
        self._queue.progress.connect(self.progress)
        self._queue.idle.connect(self.analysis_idle)
        self._handshake.finished.connect(self._on_handshake_finished)
        transport.unavailable.connect(self._on_transport_unavailable)

        self._log_listener: int | None = None
        self._is_started = False
        self._is_unavailable = False

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def store(self) -> ResultStore:
        return self._store

    @property
    def handshake_state(self) -> HandshakeState:
        return self._handshake.state

    @property
    def is_available(self) -> bool:
        return not self._is_unavailable and self._handshake.outcome is not False

    @property
    def is_busy(self) -> bool:
        return self._queue.is_running

    # ── Lifecycle ────────────────────────────────────────────────────────

    def setup(self) -> bool:
        """Start the engine process and kick off the handshake."""
        if self._is_started:
            return self.is_available
        self._is_started = True
        self._is_unavailable = False
        self._log_listener = self._transport.dispatcher.add_listener(_log_engine_line)

        if not self._transport.start():
            if not self._is_unavailable:
                self._mark_unavailable("engine process could not be started")
            return False
        self._handshake.ensure_ready()
        return True

    def shutdown(self) -> None:
        """Abandon all analysis work and stop the engine process."""
        if not self._is_started:
            return
        self._queue.reset()
        self._transport.shutdown()
        if self._log_listener is not None:
            self._transport.dispatcher.remove_listener(self._log_listener)
            self._log_listener = None
        self._is_started = False

    def restart_engine(self) -> bool:
        """Restart the engine process and perform a fresh handshake."""
        self.shutdown()
        self._handshake.reset()
        return self.setup()

    # ── Game / analysis API ──────────────────────────────────────────────

    def load_game(self, fens: Sequence[str]) -> None:
        """Replace the live positions, dropping cached results and queued work."""
        self._queue.clear()
        self._store.load_positions([normalize_fen(fen) for fen in fens])

    def submit_analysis(self, positions: Sequence[str | PositionRef]) -> bool:
        """Queue *positions* for analysis, superseding any not-yet-started batch.

        Plain FEN strings take their index as ply. Returns ``False`` when the
        engine is unavailable or its handshake has failed.
        """
        if not self._is_started:
            self.setup()
        if not self.is_available:
            return False

        batch = [
            item
            if isinstance(item, PositionRef)
            else PositionRef(fen=normalize_fen(item), ply=ply)
            for ply, item in enumerate(positions)
        ]
        if not batch:
            self._queue.clear()
            return False
        self._queue.submit(batch)
        return True

    def snapshot(self) -> Mapping[int, AnalysisResult]:
        return self._store.snapshot()

    # ── Internal ─────────────────────────────────────────────────────────

    def _on_result(self, result: AnalysisResult) -> None:
        self._store.write(result.with_normalized(normalize_result(result)))

    def _on_handshake_finished(self, ok: bool) -> None:
        if not ok:
            self.analysis_failed.emit("Engine handshake failed")

    def _on_transport_unavailable(self) -> None:
        if self._is_unavailable or not self._is_started:
            return
        self._mark_unavailable("engine process is no longer available")

    def _mark_unavailable(self, message: str) -> None:
        self._is_unavailable = True
        self._queue.clear()
        _LOGGER.warning("Analysis unavailable: %s", message)
        self.analysis_failed.emit(message)
