"""Error types raised or reported by the staged solver."""

from __future__ import annotations


class SolverError(Exception):
    """Base class for solver errors."""

    code = "solver_error"


class UnsolvableState(SolverError):
    """The input cannot be reached from a solved cube with legal moves."""

    code = "unsolvable_state"


class PatternCollisionError(SolverError):
    """Two algorithms share a canonical pattern but do not solve each other's case."""

    code = "pattern_collision"

    def __init__(self, message: str, stage: str | None = None, pattern: tuple[int, ...] | None = None):
        super().__init__(message)
        self.stage = stage
        self.pattern = pattern


class AlgorithmVerificationError(SolverError):
    """An algorithm failed constructive verification and was not registered."""

    code = "algorithm_verification"


class NoAlgorithmFound(SolverError):
    code = "no_algorithm_found"


class StageStalled(SolverError):
    code = "stage_stalled"


class MoveLimitExceeded(SolverError):
    code = "move_limit_exceeded"
