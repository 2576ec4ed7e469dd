"""Facade operations consumed by the HTTP layer, the CLI and tooling."""

from __future__ import annotations

from typing import Any, Mapping

from cubesim.moves import Algorithm
from cubesim.solvability import SolvabilityReport, check_solvability as _check_solvability
from cubesim.state import CubeState

from .analysis import stage_metric
from .config import SolverConfig
from .database import AlgorithmDatabase, AlgorithmEntry, default_database
from .pipeline import SolverPipeline
from .types import SolveResult, Stage, StageMetric


def create_solved_cube() -> CubeState:
    return CubeState.solved()


def apply_move_sequence(state: CubeState, notation: str | Algorithm) -> CubeState:
    """Apply notation to a state; raises ``MalformedMoveNotation`` before any move is applied."""
    alg = notation if isinstance(notation, Algorithm) else Algorithm.parse(notation)
    return state.apply(alg)


def check_solvability(state: CubeState) -> SolvabilityReport:
    return _check_solvability(state)


def analyze_stage(stage: Stage | str, state: CubeState) -> StageMetric:
    return stage_metric(stage, state)


def solve_cube(
    state: CubeState,
    config: SolverConfig | Mapping[str, Any] | None = None,
    database: AlgorithmDatabase | None = None,
) -> SolveResult:
    if config is not None and not isinstance(config, SolverConfig):
        config = SolverConfig.from_mapping(config)
    return SolverPipeline(database=database, config=config).solve(state)


def register_algorithm(entry: AlgorithmEntry, database: AlgorithmDatabase | None = None) -> AlgorithmEntry:
    """Verify and add an entry; raises ``PatternCollisionError`` or ``AlgorithmVerificationError``."""
    db = database if database is not None else default_database()
    return db.register(entry)
