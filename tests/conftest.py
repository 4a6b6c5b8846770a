"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import os
import sys
import time
from collections.abc import Callable, Iterator

import pytest
from PyQt6.QtCore import QObject, pyqtSignal

# Linux CI runners are often headless. Force an offscreen backend only there.
if (
    sys.platform.startswith("linux")
    and "QT_QPA_PLATFORM" not in os.environ
    and "DISPLAY" not in os.environ
    and "WAYLAND_DISPLAY" not in os.environ
):
    os.environ["QT_QPA_PLATFORM"] = "offscreen"


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication so timers and signals work."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


Reply = str | list[str] | Callable[[str], list[str]] | None


class ScriptedTransport(QObject):
    """In-memory engine transport replying synchronously from a script.

    ``replies`` maps a command (or a command prefix ending in a space, e.g.
    ``"go "``) to the lines the fake engine prints in response. A reply may
    also be a callable receiving the command. Commands without a scripted
    reply get no answer, which is how tests simulate a hung engine.
    """

    unavailable = pyqtSignal()

    def __init__(
        self,
        replies: dict[str, Reply] | None = None,
        *,
        running: bool = True,
        fail_on: set[str] | None = None,
    ) -> None:
        from chessview.engine.dispatcher import LineDispatcher

        super().__init__()
        self.dispatcher = LineDispatcher(self)
        self.replies: dict[str, Reply] = dict(replies or {})
        self.sent: list[str] = []
        self.running = running
        self.fail_on = set(fail_on or ())
        self.start_calls = 0
        self.shutdown_calls = 0

    @property
    def is_running(self) -> bool:
        return self.running

    def start(self) -> bool:
        self.start_calls += 1
        return self.running

    def shutdown(self) -> None:
        self.shutdown_calls += 1

    def send(self, command: str) -> bool:
        if not self.running or command.split(maxsplit=1)[0] in self.fail_on:
            return False
        self.sent.append(command)
        for line in self._lines_for(command):
            self.dispatcher.dispatch(line)
        return True

    def emit_lines(self, *lines: str) -> None:
        for line in lines:
            self.dispatcher.dispatch(line)

    def count(self, command: str) -> int:
        return sum(1 for sent in self.sent if sent == command)

    def _lines_for(self, command: str) -> list[str]:
        reply = self.replies.get(command)
        if reply is None:
            for key, value in self.replies.items():
                if key.endswith(" ") and command.startswith(key):
                    reply = value
                    break
        if reply is None:
            return []
        if callable(reply):
            return list(reply(command))
        if isinstance(reply, str):
            return [reply]
        return list(reply)


HANDSHAKE_REPLIES: dict[str, Reply] = {
    "uci": ["id name FakeFish", "id author tests", "uciok"],
    "isready": "readyok",
}


@pytest.fixture
def scripted_transport(qapp: object) -> Callable[..., ScriptedTransport]:
    """Factory for :class:`ScriptedTransport` with a working handshake."""
    del qapp

    def _make(
        replies: dict[str, Reply] | None = None,
        **kwargs: object,
    ) -> ScriptedTransport:
        script = dict(HANDSHAKE_REPLIES)
        script.update(replies or {})
        return ScriptedTransport(script, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def wait_until(qapp: object) -> Callable[..., bool]:
    """Spin the Qt event loop until a condition holds or the timeout expires."""
    del qapp
    from PyQt6.QtCore import QEventLoop, QTimer

    def _wait(condition: Callable[[], bool], timeout_ms: int = 5000) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000
        while not condition():
            if time.monotonic() > deadline:
                return False
            loop = QEventLoop()
            QTimer.singleShot(10, loop.quit)
            loop.exec()
        return True

    return _wait
