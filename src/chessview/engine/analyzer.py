"""Single-position UCI search driver."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from PyQt6.QtCore import QObject, QTimer

from chessview.analysis.errors import EngineError, ProcessUnavailable, SearchTimeout
from chessview.analysis.models import AnalysisResult, PositionRef, Score
from chessview.core.enums import Color
from chessview.core.fen import piece_at
from chessview.engine import uci
from chessview.engine.transport import IEngineTransport

_LOGGER = logging.getLogger(__name__)

ResultCallback = Callable[[AnalysisResult], None]


@dataclass(slots=True)
class _ActiveSearch:
    position: PositionRef
    on_done: ResultCallback
    last_info: str | None = None
    score: Score | None = None
    pv: tuple[str, ...] = field(default_factory=tuple)

    def forget_info(self) -> None:
        self.last_info = None
        self.score = None
        self.pv = ()


def _moves_side_to_move(position: PositionRef, move: str | None) -> bool:
    """Does *move* start from a square holding a piece of the side to move?"""
    if move is None or len(move) < 4:
        return False
    try:
        piece = piece_at(position.fen, move[:2])
        side = position.side_to_move
    except ValueError:
        return False
    return piece is not None and piece.isupper() == (side == Color.WHITE)


class PositionAnalyzer(QObject):
    """Drives one position through ``position``/``go`` and waits for ``bestmove``.

    Exactly one :class:`AnalysisResult` is reported per :meth:`analyze`
    call, either populated or carrying an error. Only one search may be in
    flight at a time.

    A search that times out keeps running inside the engine and its
    ``bestmove`` can still arrive later. Such searches are counted as
    orphaned and their late ``bestmove`` lines are discarded. While an
    orphan is outstanding, a ``bestmove`` is credited to the current search
    only if it moves a piece of that position's side to move; accepting one
    settles every orphan, since the engine answers searches in order.
    """

    __slots__ = (
        "_active",
        "_depth",
        "_listener",
        "_orphaned",
        "_timeout_ms",
        "_timer",
        "_transport",
    )

    def __init__(
        self,
        transport: IEngineTransport,
        *,
        depth: int,
        timeout_ms: int,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._transport = transport
        self._depth = depth
        self._timeout_ms = timeout_ms
        self._active: _ActiveSearch | None = None
        self._orphaned = 0
        self._listener: int | None = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    @property
    def orphaned_searches(self) -> int:
        """Timed-out searches whose ``bestmove`` has not been seen yet."""
        return self._orphaned

    def analyze(self, position: PositionRef, on_done: ResultCallback) -> None:
        """Search *position* and report the outcome through *on_done*."""
        if self._active is not None:
            raise RuntimeError("An engine search is already in progress")

        search = _ActiveSearch(position=position, on_done=on_done)
        self._active = search
        self._sync_listener()
        self._timer.start(self._timeout_ms)

        for command in (
            uci.position_command(position.fen),
            uci.go_depth_command(self._depth),
        ):
            if self._active is not search:
                return  # already finished synchronously
            if not self._transport.send(command):
                self._finish(
                    search,
                    error=ProcessUnavailable(f"could not send {command!r}"),
                )
                return

    def abort(self) -> None:
        """Drop the active search and all orphans without reporting anything.

        Only valid when the engine process is being replaced, so that
        nothing printed for those searches can arrive any more.
        """
        self._timer.stop()
        if self._active is not None:
            _LOGGER.debug("Abandoning search of ply %d", self._active.position.ply)
        self._active = None
        self._orphaned = 0
        self._sync_listener()

    # ── Line handling ────────────────────────────────────────────────────

    def _on_line(self, line: str) -> None:
        search = self._active

        if uci.is_bestmove_line(line):
            best, ponder = uci.parse_bestmove(line)
            if self._orphaned:
                if search is None or not _moves_side_to_move(search.position, best):
                    self._discard_late_bestmove(search, line)
                    return
                self._orphaned = 0
            if search is None:
                return
            self._finish(
                search,
                result=AnalysisResult(
                    position=search.position,
                    best_move=best,
                    ponder_move=ponder,
                    score=search.score,
                    pv=search.pv,
                    raw_info=search.last_info,
                ),
            )
            return

        if search is None or not uci.is_info_line(line):
            return
        info = uci.parse_info(line)
        search.last_info = line
        if info.score is not None:
            search.score = info.score
        if info.pv:
            search.pv = info.pv

    def _discard_late_bestmove(self, search: _ActiveSearch | None, line: str) -> None:
        self._orphaned -= 1
        _LOGGER.debug("Discarding %r from a timed-out search", line)
        if search is not None:
            # Info lines seen so far came from the orphaned search.
            search.forget_info()
        self._sync_listener()

    def _on_timeout(self) -> None:
        search = self._active
        if search is None:
            return
        self._orphaned += 1
        self._finish(
            search,
            error=SearchTimeout(
                f"no bestmove for ply {search.position.ply} "
                f"within {self._timeout_ms} ms"
            ),
        )

    # ── Completion ───────────────────────────────────────────────────────

    def _finish(
        self,
        search: _ActiveSearch,
        *,
        result: AnalysisResult | None = None,
        error: EngineError | None = None,
    ) -> None:
        if self._active is not search:
            return
        self._timer.stop()
        self._active = None
        self._sync_listener()

        if error is not None:
            _LOGGER.warning(
                "Analysis of ply %d failed (%s): %s",
                search.position.ply,
                error.kind,
                error,
            )
            result = AnalysisResult.failed(search.position, error)
        assert result is not None
        search.on_done(result)

    def _sync_listener(self) -> None:
        # Listen while a search runs or a late bestmove is still expected.
        wanted = self._active is not None or self._orphaned > 0
        dispatcher = self._transport.dispatcher
        if wanted and self._listener is None:
            self._listener = dispatcher.add_listener(self._on_line)
        elif not wanted and self._listener is not None:
            dispatcher.remove_listener(self._listener)
            self._listener = None
