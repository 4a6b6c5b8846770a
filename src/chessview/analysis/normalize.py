"""Score normalization onto the bounded, White-relative chart scale."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from chessview.analysis.models import AnalysisResult, Score, ScoreKind
from chessview.core.enums import Color

EVAL_SCALE_MIN = -9.0
EVAL_SCALE_MAX = 9.0
LOSS_SCALE_MAX = 9.0

_CP_PER_UNIT = 100


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize_score(score: Score | None, side_to_move: Color) -> float | None:
    """Convert a side-to-move score into pawns from White's point of view.

    Centipawns are divided by 100 and clamped to
    ``[EVAL_SCALE_MIN, EVAL_SCALE_MAX]``. A mate score maps to the
    matching extreme; mate-in-zero (the side to move is already mated) maps
    to ``0.0``. ``None`` stays ``None``.
    """
    if score is None:
        return None

    sign = side_to_move.sign
    if score.kind == ScoreKind.CENTIPAWN:
        pawns = score.value * sign / _CP_PER_UNIT
        return _clamp(pawns, EVAL_SCALE_MIN, EVAL_SCALE_MAX)

    if score.value == 0:
        return 0.0
    mate_sign = 1 if score.value > 0 else -1
    return EVAL_SCALE_MAX if mate_sign * sign > 0 else EVAL_SCALE_MIN


def normalize_result(result: AnalysisResult) -> float | None:
    """Normalized evaluation of a populated result; ``None`` for failures."""
    if not result.ok:
        return None
    return normalize_score(result.score, result.position.side_to_move)


def eval_series(
    snapshot: Mapping[int, AnalysisResult],
    total: int,
) -> list[float | None]:
    """Per-ply normalized evaluations for *total* plies (gaps are ``None``)."""
    series: list[float | None] = []
    for ply in range(total):
        result = snapshot.get(ply)
        series.append(result.normalized if result is not None else None)
    return series


def carry_forward(values: Sequence[float | None]) -> list[float | None]:
    """Replace gaps with the last known value, for display continuity."""
    out: list[float | None] = []
    last: float | None = None
    for value in values:
        if value is not None:
            last = value
        out.append(last)
    return out


def loss_series(
    evals: Sequence[float | None],
    *,
    first_mover: Color = Color.WHITE,
) -> list[float | None]:
    """Evaluation lost by the side that made each move.

    Entry ``i`` describes the move leading from ply ``i`` to ply ``i + 1``;
    *first_mover* moves from even plies. Values are clamped to
    ``[0, LOSS_SCALE_MAX]`` and are ``None`` when either evaluation is
    unknown.
    """
    losses: list[float | None] = []
    for ply in range(len(evals) - 1):
        before, after = evals[ply], evals[ply + 1]
        if before is None or after is None:
            losses.append(None)
            continue
        mover = first_mover if ply % 2 == 0 else first_mover.opposite
        drop = (before - after) * mover.sign
        losses.append(_clamp(drop, 0.0, LOSS_SCALE_MAX))
    return losses
