"""Game-side collaborators of the analysis pipeline."""

from chessview.game.interfaces import IPositionSource
from chessview.game.source import FenListSource

__all__ = [
    "FenListSource",
    "IPositionSource",
]
