"""Engine analysis settings."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class EngineSettings:
    """All user-configurable engine analysis settings."""

    # Process
    engine_path: str = "stockfish"
    engine_args: tuple[str, ...] = field(default_factory=tuple)
    start_timeout_ms: int = 3_000

    # Protocol
    handshake_timeout_ms: int = 10_000
    search_depth: int = 15
    # A search may legitimately outlast a handshake round trip.
    search_timeout_ms: int = 30_000

    def __post_init__(self) -> None:
        if self.search_depth < 1:
            raise ValueError("Search depth must be >= 1")
        for name in ("start_timeout_ms", "handshake_timeout_ms", "search_timeout_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.search_timeout_ms <= self.handshake_timeout_ms:
            raise ValueError(
                "search_timeout_ms must be greater than handshake_timeout_ms"
            )

    def with_overrides(self, **overrides: Any) -> EngineSettings:
        """Return a validated copy with *overrides* applied, skipping ``None``."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
