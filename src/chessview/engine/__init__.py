"""UCI engine client: process transport, line dispatch, handshake, search."""

from chessview.engine.analyzer import PositionAnalyzer
from chessview.engine.dispatcher import LineDispatcher
from chessview.engine.handshake import EngineHandshake, HandshakeState
from chessview.engine.transport import EngineTransport, IEngineTransport

__all__ = [
    "EngineHandshake",
    "EngineTransport",
    "HandshakeState",
    "IEngineTransport",
    "LineDispatcher",
    "PositionAnalyzer",
]
