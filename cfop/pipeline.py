"""CROSS -> F2L -> OLL -> PLL -> DONE state machine; FAILED is reachable from every stage."""

from __future__ import annotations

import logging

from cubesim.solvability import check_solvability
from cubesim.state import CubeState

from .config import SolverConfig
from .database import AlgorithmDatabase, default_database
from .errors import UnsolvableState
from .stages import STAGE_CLASSES, SolverStage
from .types import SOLVING_STAGES, AppliedAlgorithm, SolveResult, Stage, StageReport

logger = logging.getLogger(__name__)

NEXT_STAGE = {
    Stage.CROSS: Stage.F2L,
    Stage.F2L: Stage.OLL,
    Stage.OLL: Stage.PLL,
    Stage.PLL: Stage.DONE,
}


class SolverPipeline:
    def __init__(self, database: AlgorithmDatabase | None = None, config: SolverConfig | None = None):
        self.database = database if database is not None else default_database()
        self.config = config or SolverConfig()
        self.stages: dict[Stage, SolverStage] = {
            stage: STAGE_CLASSES[stage](self.database, self.config) for stage in SOLVING_STAGES
        }

    def solve(self, state: CubeState) -> SolveResult:
        if self.config.validate_solvability:
            report = check_solvability(state)
            if not report.is_solvable:
                message = "; ".join(e["message"] for e in report.errors)
                logger.warning("solve_rejected reason=%s", ",".join(report.error_codes()))
                return SolveResult(
                    success=False,
                    applied_algorithms=[],
                    total_moves=0,
                    final_state=state,
                    final_stage=Stage.FAILED,
                    error=UnsolvableState.code,
                    error_message=message,
                )

        current = Stage.CROSS
        applied: list[AppliedAlgorithm] = []
        reports: list[StageReport] = []
        total = 0
        error: str | None = None
        error_message: str | None = None

        while current not in (Stage.DONE, Stage.FAILED):
            remaining = self.config.max_total_moves - total
            result = self.stages[current].solve(state, move_budget=remaining)
            reports.extend(result.stage_reports)
            applied.extend(result.applied_algorithms)
            total += result.total_moves
            state = result.final_state

            if result.success:
                logger.debug("stage_done stage=%s moves=%d", current.value, result.total_moves)
                current = NEXT_STAGE[current]
            else:
                logger.warning(
                    "stage_failed stage=%s error=%s message=%s",
                    current.value,
                    result.error,
                    result.error_message,
                )
                error, error_message = result.error, result.error_message
                current = Stage.FAILED

        if current is Stage.DONE and not state.is_fully_solved():
            error = "not_solved"
            error_message = "pipeline reached DONE but the cube is not solved"
            logger.error("solve_assertion_failed state=%s", state.to_string())
            current = Stage.FAILED

        success = current is Stage.DONE
        logger.info("solve_done success=%s total_moves=%d final_stage=%s", success, total, current.value)
        return SolveResult(
            success=success,
            applied_algorithms=applied,
            total_moves=total,
            final_state=state,
            final_stage=current,
            stage_reports=reports,
            error=error,
            error_message=error_message,
        )
