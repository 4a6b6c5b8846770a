"""Command-line entry point: analyze every position of a FEN list."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Mapping

from chessview.analysis import (
    AnalysisResult,
    carry_forward,
    eval_series,
    loss_series,
)
from chessview.config import EngineSettings
from chessview.core import Color, side_to_move
from chessview.game import FenListSource

_LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chessview",
        description="Analyze each position of a game with a UCI engine.",
    )
    parser.add_argument("fen_file", help="text file with one FEN per ply")
    parser.add_argument("--engine", help="path to the UCI engine executable")
    parser.add_argument("--depth", type=int, help="search depth per position")
    parser.add_argument("--verbose", action="store_true", help="log engine traffic")
    return parser.parse_args(argv)


def _format_report(
    snapshot: Mapping[int, AnalysisResult],
    total: int,
    first_mover: Color = Color.WHITE,
) -> list[str]:
    evals = eval_series(snapshot, total)
    shown = carry_forward(evals)
    losses = [None, *loss_series(evals, first_mover=first_mover)]
    rows = []
    for ply in range(total):
        result = snapshot.get(ply)
        if result is None:
            move = "-"
        elif result.error is not None:
            move = f"<{result.error.kind}>"
        else:
            move = result.best_move or "(none)"
        value, loss = shown[ply], losses[ply]
        value_text = "" if value is None else f"{value:+.2f}"
        loss_text = "" if loss is None else f"{loss:.2f}"
        rows.append(f"{ply:4d}  {move:>18}  {value_text:>6}  {loss_text:>5}")
    return rows


def main(argv: list[str] | None = None) -> int:
    """Run the analysis pipeline headless and print a per-ply report."""
    from PyQt6.QtCore import QCoreApplication

    from chessview.session import AnalysisSession

    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = EngineSettings().with_overrides(
            engine_path=args.engine,
            search_depth=args.depth,
        )
        fens = FenListSource.from_file(args.fen_file).positions()
    except (OSError, ValueError) as exc:
        _LOGGER.error("%s", exc)
        return 2

    app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])
    session = AnalysisSession(settings)
    exit_code = 0

    def _on_failed(message: str) -> None:
        nonlocal exit_code
        _LOGGER.error("Analysis failed: %s", message)
        exit_code = 1
        app.quit()

    session.analysis_failed.connect(_on_failed)
    session.analysis_idle.connect(app.quit)
    session.progress.connect(
        lambda done, total: _LOGGER.info("Analyzed %d/%d positions", done, total)
    )

    session.load_game(fens)
    if not session.submit_analysis(fens):
        session.shutdown()
        return 1

    if exit_code == 0:
        app.exec()
    session.shutdown()

    if exit_code == 0:
        first_mover = side_to_move(fens[0]) if fens else Color.WHITE
        for row in _format_report(session.snapshot(), len(fens), first_mover):
            print(row)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
