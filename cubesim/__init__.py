"""3x3 cube simulator: state model, move engine and solvability checks."""

from .engine import CubeEngine, random_scramble
from .errors import CubeError, InvalidCubeState, InvalidPieceConfiguration, MalformedMoveNotation
from .moves import Algorithm, Move, parse_moves
from .solvability import SolvabilityReport, check_solvability
from .state import CubeState, create_solved

__all__ = [
    "Algorithm",
    "CubeEngine",
    "CubeError",
    "CubeState",
    "InvalidCubeState",
    "InvalidPieceConfiguration",
    "MalformedMoveNotation",
    "Move",
    "SolvabilityReport",
    "check_solvability",
    "create_solved",
    "parse_moves",
    "random_scramble",
]
