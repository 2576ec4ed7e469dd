"""Staged CFOP solver for the 3x3 cube."""

from .api import (
    analyze_stage,
    apply_move_sequence,
    check_solvability,
    create_solved_cube,
    register_algorithm,
    solve_cube,
)
from .config import SolverConfig, load_config
from .database import AlgorithmDatabase, AlgorithmEntry, default_database
from .pipeline import SolverPipeline
from .types import SolveResult, Stage, StageMetric

__all__ = [
    "AlgorithmDatabase",
    "AlgorithmEntry",
    "SolveResult",
    "SolverConfig",
    "SolverPipeline",
    "Stage",
    "StageMetric",
    "analyze_stage",
    "apply_move_sequence",
    "check_solvability",
    "create_solved_cube",
    "default_database",
    "load_config",
    "register_algorithm",
    "solve_cube",
]
