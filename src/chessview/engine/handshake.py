"""One-time UCI initialization (``uci`` / ``ucinewgame`` / ``isready``)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import IntEnum, auto

from PyQt6.QtCore import QObject, pyqtSignal

from chessview.analysis.errors import EngineError, HandshakeFailed, ProcessUnavailable
from chessview.engine import uci
from chessview.engine.transport import IEngineTransport

_LOGGER = logging.getLogger(__name__)

ReadyCallback = Callable[[bool], None]


class HandshakeState(IntEnum):
    """Finite-state-machine states of the engine handshake."""

    UNINITIALIZED = auto()
    HANDSHAKING = auto()
    READY = auto()
    FAILED = auto()


class EngineHandshake(QObject):
    """Memoized asynchronous handshake.

    The first :meth:`ensure_ready` call starts the exchange; callers arriving
    while it runs are queued on the same attempt, and callers arriving
    afterwards get the cached outcome without any command being sent.
    """

    finished = pyqtSignal(bool)

    __slots__ = (
        "_callbacks",
        "_state",
        "_timeout_ms",
        "_transport",
        "_waiter_handle",
    )

    def __init__(
        self,
        transport: IEngineTransport,
        *,
        timeout_ms: int,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._transport = transport
        self._timeout_ms = timeout_ms
        self._state = HandshakeState.UNINITIALIZED
        self._callbacks: list[ReadyCallback] = []
        self._waiter_handle: int | None = None

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def outcome(self) -> bool | None:
        """``True``/``False`` once finished, ``None`` before."""
        if self._state == HandshakeState.READY:
            return True
        if self._state == HandshakeState.FAILED:
            return False
        return None

    def ensure_ready(self, callback: ReadyCallback | None = None) -> None:
        """Run (or join, or replay) the handshake and report its outcome."""
        outcome = self.outcome
        if outcome is not None:
            if callback is not None:
                callback(outcome)
            return

        if callback is not None:
            self._callbacks.append(callback)
        if self._state == HandshakeState.HANDSHAKING:
            return

        self._state = HandshakeState.HANDSHAKING
        _LOGGER.debug("Starting engine handshake")
        self._await_then_send(uci.UCI_OK, uci.UCI, self._on_uci_ok)

    def reset(self) -> None:
        """Forget the outcome so a restarted engine can handshake again.

        An attempt still in progress is abandoned: its waiter is cancelled
        and its queued callers are dropped without being notified.
        """
        if self._waiter_handle is not None:
            self._transport.dispatcher.cancel_waiter(self._waiter_handle)
            self._waiter_handle = None
        self._callbacks.clear()
        self._state = HandshakeState.UNINITIALIZED

    # ── Protocol steps ───────────────────────────────────────────────────

    def _on_uci_ok(self, _line: str) -> None:
        if not self._transport.send(uci.UCI_NEW_GAME):
            self._fail(ProcessUnavailable(f"could not send {uci.UCI_NEW_GAME!r}"))
            return
        self._await_then_send(uci.READY_OK, uci.IS_READY, self._on_ready_ok)

    def _on_ready_ok(self, _line: str) -> None:
        self._finish(True)

    def _await_then_send(
        self,
        token: str,
        command: str,
        on_match: Callable[[str], None],
    ) -> None:
        # Register first so a reply delivered during send() cannot be missed.
        dispatcher = self._transport.dispatcher
        self._waiter_handle = dispatcher.wait_for(
            uci.starts_with_token(token),
            on_match=on_match,
            on_timeout=lambda: self._fail(
                HandshakeFailed(f"no {token!r} within {self._timeout_ms} ms")
            ),
            timeout_ms=self._timeout_ms,
        )
        if not self._transport.send(command):
            self._fail(ProcessUnavailable(f"could not send {command!r}"))

    # ── Completion ───────────────────────────────────────────────────────

    def _fail(self, exc: EngineError) -> None:
        if self._state != HandshakeState.HANDSHAKING:
            return
        _LOGGER.warning("Engine handshake failed (%s): %s", exc.kind, exc)
        self._finish(False)

    def _finish(self, ok: bool) -> None:
        if self._state != HandshakeState.HANDSHAKING:
            return
        if self._waiter_handle is not None:
            self._transport.dispatcher.cancel_waiter(self._waiter_handle)
            self._waiter_handle = None
        self._state = HandshakeState.READY if ok else HandshakeState.FAILED
        if ok:
            _LOGGER.info("Engine handshake complete")

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(ok)
        self.finished.emit(ok)
