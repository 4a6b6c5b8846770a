"""Core enumerations for the chess domain."""

from __future__ import annotations

from enum import IntEnum


class Color(IntEnum):
    """Side color."""

    WHITE = 0
    BLACK = 1

    @property
    def opposite(self) -> Color:
        return Color(1 - self.value)

    @property
    def sign(self) -> int:
        """+1 for White, -1 for Black (White-relative perspective multiplier)."""
        return 1 if self == Color.WHITE else -1

    def __str__(self) -> str:
        return self.name.lower()
