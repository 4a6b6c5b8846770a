"""Abstract interfaces for the rules collaborator.

The analysis pipeline never generates moves itself: it depends on a source
that turns a loaded game into an ordered list of position identifiers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPositionSource(ABC):
    """Supplies the ordered, 0-indexed positions of the loaded game."""

    @abstractmethod
    def positions(self) -> list[str]:
        """FEN of every ply, starting with the initial position at index 0."""
