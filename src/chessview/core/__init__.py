"""Core domain helpers shared by the analysis pipeline."""

from chessview.core.enums import Color
from chessview.core.fen import STARTING_FEN, normalize_fen, piece_at, side_to_move

__all__ = [
    "Color",
    "STARTING_FEN",
    "normalize_fen",
    "piece_at",
    "side_to_move",
]
