"""Position sources backed by plain FEN lists."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from chessview.core.fen import normalize_fen
from chessview.game.interfaces import IPositionSource


class FenListSource(IPositionSource):
    """Positions given explicitly, one FEN per ply."""

    __slots__ = ("_fens",)

    def __init__(self, fens: Iterable[str]) -> None:
        self._fens = [normalize_fen(fen) for fen in fens]

    @classmethod
    def from_file(cls, path: str | Path) -> FenListSource:
        """Read one FEN per line; blank lines and ``#`` comments are skipped."""
        text = Path(path).read_text(encoding="utf-8")
        lines = (line.strip() for line in text.splitlines())
        return cls(line for line in lines if line and not line.startswith("#"))

    def positions(self) -> list[str]:
        return list(self._fens)
