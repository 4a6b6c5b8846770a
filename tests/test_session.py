"""Tests for the AnalysisSession facade."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from PyQt6.QtTest import QSignalSpy

from chessview.analysis.models import AnalysisErrorKind, PositionRef
from chessview.config import EngineSettings
from chessview.core.fen import STARTING_FEN
from chessview.engine.handshake import HandshakeState
from chessview.session import AnalysisSession

_FAKE_ENGINE = Path(__file__).resolve().parent / "fixtures" / "fake_uci_engine.py"

_AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
_AFTER_D4 = "rnbqkbnr/pppppppp/8/8/3P4/8/PPP1PPPP/RNBQKBNR b KQkq - 0 1"
_AFTER_E5 = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
_AFTER_D5 = "rnbqkbnr/ppp1pppp/8/3p4/3P4/8/PPP1PPPP/RNBQKBNR w KQkq - 0 2"


def _settings() -> EngineSettings:
    return EngineSettings(handshake_timeout_ms=500, search_timeout_ms=1000)


class TestScriptedSession:
    def test_results_are_stored_with_white_relative_eval(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport(
            {"go ": ["info depth 15 score cp 40 pv e7e5", "bestmove e7e5"]}
        )
        session = AnalysisSession(_settings(), transport=transport)
        changed = QSignalSpy(session.snapshot_changed)
        idle = QSignalSpy(session.analysis_idle)

        session.load_game([STARTING_FEN, _AFTER_E4])
        assert session.submit_analysis([STARTING_FEN, _AFTER_E4]) is True

        snapshot = session.snapshot()
        assert sorted(snapshot) == [0, 1]
        assert snapshot[0].normalized == pytest.approx(0.4)
        # Black to move: +40 for Black is -0.4 for White.
        assert snapshot[1].normalized == pytest.approx(-0.4)
        # One publish from load_game, then one per accepted result.
        assert len(changed) == 3
        assert len(idle) == 1
        assert session.handshake_state == HandshakeState.READY
        assert session.is_busy is False

    def test_plain_fens_take_their_index_as_ply(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport({"go ": "bestmove e2e4"})
        session = AnalysisSession(_settings(), transport=transport)
        session.load_game([STARTING_FEN, _AFTER_E4, _AFTER_E5])

        session.submit_analysis([STARTING_FEN, _AFTER_E4])
        assert sorted(session.snapshot()) == [0, 1]

        session.submit_analysis([PositionRef(_AFTER_E5, 2)])
        assert sorted(session.snapshot()) == [0, 1, 2]

    def test_result_for_replaced_game_is_discarded(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport()
        session = AnalysisSession(_settings(), transport=transport)
        session.load_game([STARTING_FEN, _AFTER_E4])
        session.submit_analysis([PositionRef(_AFTER_E4, 1)])

        session.load_game([STARTING_FEN, _AFTER_D4])
        transport.emit_lines("info depth 15 score cp 10 pv e7e5", "bestmove e7e5")

        assert dict(session.snapshot()) == {}
        assert session.is_busy is False

    def test_empty_batch_is_rejected(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        session = AnalysisSession(_settings(), transport=scripted_transport())
        assert session.submit_analysis([]) is False

    def test_search_errors_are_recorded(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport(fail_on={"go"})
        session = AnalysisSession(_settings(), transport=transport)
        session.load_game([STARTING_FEN])

        assert session.submit_analysis([STARTING_FEN]) is True

        result = session.snapshot()[0]
        assert result.error is not None
        assert result.error.kind == AnalysisErrorKind.PROCESS_UNAVAILABLE
        assert result.normalized is None


class TestUnavailableEngine:
    def test_process_that_will_not_start(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport(running=False)
        session = AnalysisSession(_settings(), transport=transport)
        failed = QSignalSpy(session.analysis_failed)

        assert session.submit_analysis([STARTING_FEN]) is False
        assert session.is_available is False
        assert len(failed) == 1
        assert transport.sent == []

    def test_failed_handshake(self, scripted_transport: Callable[..., object]) -> None:
        transport = scripted_transport(fail_on={"ucinewgame"})
        session = AnalysisSession(_settings(), transport=transport)
        failed = QSignalSpy(session.analysis_failed)

        assert session.submit_analysis([STARTING_FEN]) is False
        assert session.handshake_state == HandshakeState.FAILED
        assert len(failed) == 1
        assert failed[0][0] == "Engine handshake failed"

        # Not retried until the engine is restarted.
        assert session.submit_analysis([STARTING_FEN]) is False
        assert transport.count("uci") == 1

    def test_restart_runs_a_fresh_handshake(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport(
            {"go ": "bestmove e2e4"}, fail_on={"ucinewgame"}
        )
        session = AnalysisSession(_settings(), transport=transport)
        session.load_game([STARTING_FEN])
        assert session.submit_analysis([STARTING_FEN]) is False

        transport.fail_on.clear()
        assert session.restart_engine() is True

        assert session.handshake_state == HandshakeState.READY
        assert transport.count("uci") == 2
        assert session.submit_analysis([STARTING_FEN]) is True
        assert session.snapshot()[0].best_move == "e2e4"

    def test_restart_mid_search_waits_for_fresh_handshake(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport()
        session = AnalysisSession(_settings(), transport=transport)
        session.load_game([STARTING_FEN, _AFTER_E4])
        assert session.submit_analysis([STARTING_FEN, _AFTER_E4]) is True
        assert session.is_busy

        transport.replies["isready"] = None
        assert session.restart_engine() is True
        assert transport.shutdown_calls == 1
        assert session.handshake_state == HandshakeState.HANDSHAKING

        sent_before = len(transport.sent)
        assert session.submit_analysis([_AFTER_E4]) is True
        assert not any(
            cmd.startswith("position") for cmd in transport.sent[sent_before:]
        )

        # A reply to the abandoned search is no longer listened for.
        transport.emit_lines("bestmove e2e4")
        assert dict(session.snapshot()) == {}

        transport.emit_lines("readyok")
        assert session.handshake_state == HandshakeState.READY
        assert transport.sent[-2:] == [f"position fen {_AFTER_E4}", "go depth 15"]

    def test_shutdown_stops_transport_once(
        self, scripted_transport: Callable[..., object]
    ) -> None:
        transport = scripted_transport()
        session = AnalysisSession(_settings(), transport=transport)
        session.setup()

        session.shutdown()
        session.shutdown()

        assert transport.shutdown_calls == 1
        assert transport.dispatcher.listener_count == 0


class TestEngineProcess:
    def _session(self, **overrides: object) -> AnalysisSession:
        settings = EngineSettings(
            engine_path=sys.executable,
            engine_args=(str(_FAKE_ENGINE),),
            handshake_timeout_ms=5000,
            search_timeout_ms=10_000,
        ).with_overrides(**overrides)
        return AnalysisSession(settings)

    def test_analyzes_a_game_end_to_end(
        self, qapp: object, wait_until: Callable[..., bool]
    ) -> None:
        del qapp
        session = self._session()
        idle = QSignalSpy(session.analysis_idle)
        try:
            session.load_game([STARTING_FEN, _AFTER_E4])
            assert session.submit_analysis([STARTING_FEN, _AFTER_E4]) is True
            assert wait_until(lambda: len(idle) == 1, timeout_ms=10_000)

            snapshot = session.snapshot()
            assert snapshot[0].best_move == "e2e4"
            assert snapshot[0].ponder_move == "e7e5"
            assert snapshot[0].normalized == pytest.approx(0.25)
            assert snapshot[1].normalized == pytest.approx(-0.25)
        finally:
            session.shutdown()

    def test_silent_search_times_out_and_batch_continues(
        self, qapp: object, wait_until: Callable[..., bool]
    ) -> None:
        del qapp
        hanging = "HANG/8/8/8/8/8/8/8 w - - 0 1"
        session = self._session(handshake_timeout_ms=3000, search_timeout_ms=3500)
        idle = QSignalSpy(session.analysis_idle)
        try:
            session.load_game([STARTING_FEN, hanging, _AFTER_D5])
            assert session.submit_analysis([STARTING_FEN, hanging, _AFTER_D5])
            assert wait_until(lambda: len(idle) == 1, timeout_ms=15_000)

            snapshot = session.snapshot()
            assert snapshot[0].ok
            assert snapshot[1].error is not None
            assert snapshot[1].error.kind == AnalysisErrorKind.SEARCH_TIMEOUT
            assert snapshot[2].ok
        finally:
            session.shutdown()

    def test_missing_engine_reports_failure(self, qapp: object) -> None:
        del qapp
        session = AnalysisSession(
            EngineSettings(engine_path="/nonexistent/chessview-engine")
        )
        failed = QSignalSpy(session.analysis_failed)

        assert session.submit_analysis([STARTING_FEN]) is False
        assert len(failed) == 1
        session.shutdown()
