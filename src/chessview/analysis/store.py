"""Per-ply cache of analysis results, validated against the live game."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from PyQt6.QtCore import QObject, pyqtSignal

from chessview.analysis.models import AnalysisResult

_LOGGER = logging.getLogger(__name__)


class ResultStore(QObject):
    """Ply-indexed analysis results for the currently loaded game.

    A result is only accepted while the position it was computed for is
    still the live position at its ply; results for a game that has since
    been replaced are dropped silently. Every accepted write publishes a
    fresh read-only snapshot through :attr:`snapshot_changed`.
    """

    snapshot_changed = pyqtSignal(object)  # Mapping[int, AnalysisResult]

    __slots__ = (
        "_positions",
        "_results",
        "_snapshot",
    )

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._positions: tuple[str, ...] = ()
        self._results: dict[int, AnalysisResult] = {}
        self._snapshot: Mapping[int, AnalysisResult] = MappingProxyType({})

    # ── Positions ────────────────────────────────────────────────────────

    @property
    def positions(self) -> tuple[str, ...]:
        return self._positions

    def position_at(self, ply: int) -> str | None:
        if 0 <= ply < len(self._positions):
            return self._positions[ply]
        return None

    def load_positions(self, positions: Sequence[str]) -> None:
        """Replace the live position list and drop every cached result."""
        self._positions = tuple(positions)
        self._results = {}
        self._publish()

    # ── Results ──────────────────────────────────────────────────────────

    def write(self, result: AnalysisResult) -> bool:
        """Store *result* if its position still matches the live game."""
        live = self.position_at(result.ply)
        if live is None or live != result.position_id:
            _LOGGER.debug("Discarding stale analysis result for ply %d", result.ply)
            return False
        self._results[result.ply] = result
        self._publish()
        return True

    def get(self, ply: int) -> AnalysisResult | None:
        return self._results.get(ply)

    def snapshot(self) -> Mapping[int, AnalysisResult]:
        return self._snapshot

    @property
    def result_count(self) -> int:
        return len(self._results)

    def _publish(self) -> None:
        self._snapshot = MappingProxyType(dict(self._results))
        self.snapshot_changed.emit(self._snapshot)
