"""Engine pipeline error kinds."""

from __future__ import annotations

from typing import ClassVar

from chessview.analysis.models import AnalysisErrorKind


class EngineError(Exception):
    """Base class for failures while talking to the analysis engine."""

    kind: ClassVar[AnalysisErrorKind]


class ProcessUnavailable(EngineError):
    """The engine process could not be started or a command could not be sent."""

    kind = AnalysisErrorKind.PROCESS_UNAVAILABLE


class HandshakeFailed(EngineError):
    """The ``uci``/``isready`` exchange did not complete in time."""

    kind = AnalysisErrorKind.HANDSHAKE_FAILED


class SearchTimeout(EngineError):
    """No ``bestmove`` line arrived before the per-position deadline."""

    kind = AnalysisErrorKind.SEARCH_TIMEOUT
