"""UCI protocol vocabulary and tolerant line parsing."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from chessview.analysis.models import Score, ScoreKind

# ── Commands ─────────────────────────────────────────────────────────────────

UCI = "uci"
UCI_NEW_GAME = "ucinewgame"
IS_READY = "isready"
QUIT = "quit"

# ── Response tokens ──────────────────────────────────────────────────────────

UCI_OK = "uciok"
READY_OK = "readyok"
INFO = "info"
BEST_MOVE = "bestmove"
_NO_MOVE = "(none)"


def position_command(fen: str) -> str:
    return f"position fen {fen}"


def go_depth_command(depth: int) -> str:
    return f"go depth {depth}"


def starts_with_token(token: str) -> Callable[[str], bool]:
    """Predicate factory: does a line begin with *token*?"""

    def _predicate(line: str) -> bool:
        return line.split(maxsplit=1)[:1] == [token]

    return _predicate


def is_info_line(line: str) -> bool:
    return line.startswith(INFO + " ") or line == INFO


def is_bestmove_line(line: str) -> bool:
    return line.startswith(BEST_MOVE + " ") or line == BEST_MOVE


# ── Parsing ──────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class InfoLine:
    """Fields of interest from a single ``info`` line."""

    score: Score | None
    pv: tuple[str, ...]
    depth: int | None = None


def parse_score(tokens: list[str]) -> Score | None:
    """Parse ``score cp|mate <int>`` from *tokens*; ``None`` if absent or bad."""
    try:
        idx = tokens.index("score")
    except ValueError:
        return None
    if idx + 2 >= len(tokens):
        return None
    try:
        kind = ScoreKind(tokens[idx + 1])
        value = int(tokens[idx + 2])
    except ValueError:
        return None
    return Score(kind=kind, value=value)


def _parse_int_field(tokens: list[str], name: str) -> int | None:
    try:
        idx = tokens.index(name)
        return int(tokens[idx + 1])
    except (ValueError, IndexError):
        return None


def parse_info(line: str) -> InfoLine:
    """Parse an ``info`` line. Unknown tokens are ignored."""
    tokens = line.split()
    pv: tuple[str, ...] = ()
    if "pv" in tokens:
        # pv is always the last field of an info line
        pv = tuple(tokens[tokens.index("pv") + 1 :])
    return InfoLine(
        score=parse_score(tokens),
        pv=pv,
        depth=_parse_int_field(tokens, "depth"),
    )


def parse_bestmove(line: str) -> tuple[str | None, str | None]:
    """Return ``(best_move, ponder_move)`` from a ``bestmove`` line."""
    tokens = line.split()
    best = tokens[1] if len(tokens) > 1 else None
    if best == _NO_MOVE:
        best = None

    ponder = None
    if "ponder" in tokens:
        idx = tokens.index("ponder")
        if idx + 1 < len(tokens) and tokens[idx + 1] != _NO_MOVE:
            ponder = tokens[idx + 1]
    return best, ponder
