"""chessview: engine-backed analysis for a chess game viewer."""

__version__ = "0.1.0"
