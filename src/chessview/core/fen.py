"""Minimal FEN helpers.

Full FEN parsing and move generation belong to the rules collaborator; the
analysis pipeline only needs to validate identifiers, read the side-to-move
field and look up which piece stands on a square.
"""

from __future__ import annotations

from chessview.core.enums import Color

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_FILES = "abcdefgh"
_RANKS = "12345678"


def side_to_move(fen: str) -> Color:
    """Return the side to move encoded in *fen*.

    Raises:
        ValueError: If the FEN does not have a valid side-to-move field.
    """
    parts = fen.split()
    if len(parts) < 2:
        raise ValueError(f"Invalid FEN (missing side-to-move field): {fen!r}")

    side_part = parts[1]
    if side_part == "w":
        return Color.WHITE
    if side_part == "b":
        return Color.BLACK
    raise ValueError(f"Invalid FEN side-to-move field: {side_part!r}")


def normalize_fen(fen: str) -> str:
    """Collapse runs of whitespace so equal positions compare equal."""
    normalized = " ".join(fen.split())
    if not normalized:
        raise ValueError("Empty FEN")
    side_to_move(normalized)
    return normalized


def piece_at(fen: str, square: str) -> str | None:
    """Return the FEN piece letter standing on *square* (``"e2"``), if any.

    Raises:
        ValueError: If *square* is not a board square or the placement
            field does not have eight ranks.
    """
    if len(square) != 2 or square[0] not in _FILES or square[1] not in _RANKS:
        raise ValueError(f"Invalid square: {square!r}")
    ranks = fen.split(maxsplit=1)[0].split("/") if fen.strip() else []
    if len(ranks) != 8:
        raise ValueError(f"Invalid FEN placement field: {fen!r}")

    target = ord(square[0]) - ord("a")
    col = 0
    for char in ranks[8 - int(square[1])]:
        if char.isdigit():
            col += int(char)
            if col > target:
                return None
            continue
        if col == target:
            return char
        col += 1
    return None
