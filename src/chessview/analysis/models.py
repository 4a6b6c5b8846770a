"""Data models produced by engine analysis."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from chessview.core.enums import Color
from chessview.core.fen import side_to_move

if TYPE_CHECKING:
    from chessview.analysis.errors import EngineError


class ScoreKind(StrEnum):
    """Score units reported by a UCI engine."""

    CENTIPAWN = "cp"
    MATE = "mate"


class AnalysisErrorKind(StrEnum):
    """Failure categories surfaced on an :class:`AnalysisResult`."""

    PROCESS_UNAVAILABLE = "ProcessUnavailable"
    HANDSHAKE_FAILED = "HandshakeFailed"
    SEARCH_TIMEOUT = "SearchTimeout"


@dataclass(slots=True, frozen=True)
class PositionRef:
    """A position identifier (FEN) together with its ply in the game."""

    fen: str
    ply: int

    @property
    def side_to_move(self) -> Color:
        return side_to_move(self.fen)


@dataclass(slots=True, frozen=True)
class Score:
    """Engine score, always from the side to move's point of view."""

    kind: ScoreKind
    value: int


@dataclass(slots=True, frozen=True)
class AnalysisError:
    kind: AnalysisErrorKind
    message: str


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Engine-backed analysis for a single position.

    Exactly one of a search outcome (``best_move``/``score``/``pv``) or
    ``error`` is meaningful. ``best_move`` may be ``None`` on success when
    the engine reports ``bestmove (none)`` for a terminal position.
    """

    position: PositionRef
    best_move: str | None = None
    ponder_move: str | None = None
    score: Score | None = None
    pv: tuple[str, ...] = ()
    raw_info: str | None = None
    error: AnalysisError | None = None
    normalized: float | None = None

    @classmethod
    def failed(cls, position: PositionRef, exc: EngineError) -> AnalysisResult:
        """Build the error variant for *position* from an engine error."""
        return cls(
            position=position,
            error=AnalysisError(kind=exc.kind, message=str(exc)),
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def ply(self) -> int:
        return self.position.ply

    @property
    def position_id(self) -> str:
        return self.position.fen

    def with_normalized(self, value: float | None) -> AnalysisResult:
        return replace(self, normalized=value)
