"""Engine analysis results: models, normalization, caching and queueing."""

from chessview.analysis.errors import (
    EngineError,
    HandshakeFailed,
    ProcessUnavailable,
    SearchTimeout,
)
from chessview.analysis.models import (
    AnalysisError,
    AnalysisErrorKind,
    AnalysisResult,
    PositionRef,
    Score,
    ScoreKind,
)
from chessview.analysis.normalize import (
    EVAL_SCALE_MAX,
    EVAL_SCALE_MIN,
    LOSS_SCALE_MAX,
    carry_forward,
    eval_series,
    loss_series,
    normalize_result,
    normalize_score,
)
from chessview.analysis.queue import AnalysisQueue
from chessview.analysis.store import ResultStore

__all__ = [
    "AnalysisError",
    "AnalysisErrorKind",
    "AnalysisQueue",
    "AnalysisResult",
    "EVAL_SCALE_MAX",
    "EVAL_SCALE_MIN",
    "EngineError",
    "HandshakeFailed",
    "LOSS_SCALE_MAX",
    "PositionRef",
    "ProcessUnavailable",
    "ResultStore",
    "Score",
    "ScoreKind",
    "SearchTimeout",
    "carry_forward",
    "eval_series",
    "loss_series",
    "normalize_result",
    "normalize_score",
]
