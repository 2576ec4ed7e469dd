"""Error types raised by the cube simulator."""

from __future__ import annotations


class CubeError(Exception):
    """Base class for simulator errors."""


class MalformedMoveNotation(CubeError, ValueError):
    """Raised when move notation text cannot be parsed."""

    def __init__(self, message: str, token: str | None = None, position: int | None = None):
        super().__init__(message)
        self.token = token
        self.position = position


class InvalidCubeState(CubeError, ValueError):
    """Raised when a cube state is structurally invalid."""


class InvalidPieceConfiguration(InvalidCubeState):
    """Raised when sticker colors do not form the pieces of a real cube."""
