"""QProcess-backed transport to a line-oriented UCI engine."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Sequence
from typing import Protocol

from PyQt6.QtCore import QObject, QProcess, pyqtBoundSignal, pyqtSignal

from chessview.engine import uci
from chessview.engine.dispatcher import LineDispatcher

_LOGGER = logging.getLogger(__name__)


class IEngineTransport(Protocol):
    """Transport interface used by the session, handshake and analyzer."""

    @property
    def dispatcher(self) -> LineDispatcher: ...

    @property
    def unavailable(self) -> pyqtBoundSignal:
        """Emitted when a running engine process dies or cannot be reached."""
        ...

    @property
    def is_running(self) -> bool: ...

    def start(self) -> bool: ...

    def send(self, command: str) -> bool: ...

    def shutdown(self) -> None: ...


class EngineTransport(QObject):
    """Owns the engine process, writes commands and splits output into lines."""

    unavailable = pyqtSignal()

    _QUIT_WAIT_MS = 1000

    __slots__ = (
        "_arguments",
        "_buffer",
        "_decoder",
        "_dispatcher",
        "_is_shutting_down",
        "_process",
        "_program",
        "_start_timeout_ms",
    )

    def __init__(
        self,
        program: str,
        arguments: Sequence[str] = (),
        *,
        start_timeout_ms: int = 3000,
        dispatcher: LineDispatcher | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._program = program
        self._arguments = list(arguments)
        self._start_timeout_ms = start_timeout_ms
        self._dispatcher = dispatcher or LineDispatcher(self)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._is_shutting_down = False

        self._process = QProcess(self)
        self._process.readyReadStandardOutput.connect(self._on_ready_read)
        self._process.errorOccurred.connect(self._on_process_error)
        self._process.finished.connect(self._on_process_finished)

    @property
    def dispatcher(self) -> LineDispatcher:
        return self._dispatcher

    @property
    def is_running(self) -> bool:
        return self._process.state() == QProcess.ProcessState.Running

    def start(self) -> bool:
        """Start the engine process; ``False`` if it could not be created."""
        if self.is_running:
            return True
        self._is_shutting_down = False
        self._reset_buffer()
        self._process.start(self._program, self._arguments)
        if not self._process.waitForStarted(self._start_timeout_ms):
            _LOGGER.warning(
                "Engine process %r failed to start: %s",
                self._program,
                self._process.errorString(),
            )
            return False
        _LOGGER.info("Engine process %r started", self._program)
        return True

    def send(self, command: str) -> bool:
        """Write one command line; ``False`` if the process is unavailable."""
        if not self.is_running:
            _LOGGER.debug("Dropping command %r: engine not running", command)
            return False
        written = self._process.write((command + "\n").encode("utf-8"))
        if written < 0:
            _LOGGER.warning("Failed to write %r to engine", command)
            return False
        _LOGGER.debug(">> %s", command)
        return True

    def feed(self, payload: bytes | str) -> None:
        """Split a raw output chunk into lines and dispatch the complete ones."""
        if isinstance(payload, (bytes, bytearray)):
            text = self._decoder.decode(bytes(payload))
        else:
            text = payload

        self._buffer += text
        *complete, self._buffer = self._buffer.split("\n")
        for raw in complete:
            line = raw.strip()
            if line:
                self._dispatcher.dispatch(line)

    def shutdown(self) -> None:
        """Ask the engine to quit, killing it if it does not comply."""
        if not self.is_running:
            return
        self._is_shutting_down = True
        self.send(uci.QUIT)
        if not self._process.waitForFinished(self._QUIT_WAIT_MS):
            self._process.kill()
            self._process.waitForFinished(self._QUIT_WAIT_MS)
        self._reset_buffer()

    # ── Process signals ──────────────────────────────────────────────────

    def _on_ready_read(self) -> None:
        self.feed(bytes(self._process.readAllStandardOutput()))

    def _on_process_error(self, error: QProcess.ProcessError) -> None:
        if self._is_shutting_down:
            return
        _LOGGER.warning(
            "Engine process error %s: %s", error.name, self._process.errorString()
        )
        self.unavailable.emit()

    def _on_process_finished(
        self, exit_code: int, _status: QProcess.ExitStatus
    ) -> None:
        if self._is_shutting_down:
            return
        _LOGGER.warning("Engine process exited unexpectedly (code %d)", exit_code)
        self.unavailable.emit()

    def _reset_buffer(self) -> None:
        self._buffer = ""
        self._decoder.reset()
