"""The four CFOP stages: each analyzes its progress and solves with bounded attempts."""

from __future__ import annotations

import logging
import math

from cubesim.moves import AUF_MOVES, Algorithm
from cubesim.state import CubeState

from .analysis import (
    F2L_SLOTS,
    aligning_turn,
    is_cross_solved,
    is_f2l_solved,
    is_last_layer_oriented,
    is_solved_up_to_auf,
    solved_slots,
    stage_metric,
)
from .config import SolverConfig
from .database import AlgorithmDatabase
from .errors import MoveLimitExceeded, NoAlgorithmFound, SolverError, StageStalled
from .search import macro_search, solve_cross, solve_slot
from .types import AppliedAlgorithm, SolveResult, Stage, StageMetric, StageReport

logger = logging.getLogger(__name__)


class SolverStage:
    """Base stage: subclasses supply ``next_step``; the bounded loop lives here."""

    stage = Stage.CROSS

    def __init__(self, database: AlgorithmDatabase, config: SolverConfig):
        self.database = database
        self.config = config

    def analyze(self, state: CubeState) -> StageMetric:
        return stage_metric(self.stage, state)

    def next_step(self, state: CubeState) -> tuple[str, Algorithm]:
        raise NotImplementedError

    def solve(
        self,
        state: CubeState,
        max_attempts: int | None = None,
        move_budget: int | None = None,
    ) -> SolveResult:
        max_attempts = self.config.max_attempts if max_attempts is None else max_attempts
        budget = self.config.max_moves_per_stage
        if move_budget is not None:
            budget = min(budget, move_budget)

        before = metric = self.analyze(state)
        applied: list[AppliedAlgorithm] = []
        moves = 0
        attempts = 0
        stall = 0
        seen = {state.key()}
        error: SolverError | None = None

        while not metric.complete:
            if attempts >= max_attempts:
                error = StageStalled(f"{self.stage.value} not complete after {attempts} attempts")
                break
            attempts += 1
            try:
                name, alg = self.next_step(state)
            except NoAlgorithmFound as exc:
                error = exc
                break

            alg = alg.simplified()
            if moves + len(alg) > budget:
                error = MoveLimitExceeded(
                    f"{self.stage.value} step {name!r} needs {len(alg)} moves; {budget - moves} left"
                )
                break

            state = state.apply(alg)
            moves += len(alg)
            applied.append(AppliedAlgorithm(self.stage, name, str(alg), len(alg)))
            logger.debug("stage_step stage=%s name=%s moves=%d", self.stage.value, name, len(alg))

            new_metric = self.analyze(state)
            if new_metric.complete:
                metric = new_metric
                break
            if state.key() in seen:
                metric = new_metric
                error = StageStalled(f"{self.stage.value} returned to an earlier state")
                break
            seen.add(state.key())

            if new_metric.value > metric.value:
                stall = 0
            else:
                stall += 1
                if stall >= self.config.stall_limit:
                    metric = new_metric
                    error = StageStalled(f"{self.stage.value} made no progress in {stall} attempts")
                    break
            metric = new_metric

        success = metric.complete and error is None
        report = StageReport(
            stage=self.stage,
            success=success,
            skipped=before.complete,
            moves=moves,
            attempts=attempts,
            metric_before=before,
            metric_after=metric,
            applied=list(applied),
            error=None if error is None else error.code,
            error_message=None if error is None else str(error),
        )
        return SolveResult(
            success=success,
            applied_algorithms=applied,
            total_moves=moves,
            final_state=state,
            final_stage=self.stage if success else Stage.FAILED,
            stage_reports=[report],
            error=report.error,
            error_message=report.error_message,
        )


class CrossStage(SolverStage):
    stage = Stage.CROSS

    def next_step(self, state: CubeState) -> tuple[str, Algorithm]:
        return "Cross", solve_cross(state, node_limit=self.config.search_node_limit)


class F2LStage(SolverStage):
    stage = Stage.F2L

    def next_step(self, state: CubeState) -> tuple[str, Algorithm]:
        if not is_cross_solved(state):
            raise NoAlgorithmFound("F2L needs a solved cross")
        done = set(solved_slots(state))
        best: tuple[str, Algorithm] | None = None
        best_len = math.inf
        for slot in F2L_SLOTS:
            if slot in done:
                continue
            alg = solve_slot(state, slot, node_limit=self.config.search_node_limit)
            if len(alg) < best_len:
                best, best_len = (f"F2L {slot}", alg), len(alg)
        if best is None:
            raise NoAlgorithmFound("no unsolved F2L slot")
        return best


class _LastLayerStage(SolverStage):
    """Database lookup with U alignment, then fallback macro search."""

    def _precondition(self, state: CubeState) -> None:
        if not is_f2l_solved(state):
            raise NoAlgorithmFound(f"{self.stage.value} needs solved first two layers")

    def _done(self, state: CubeState) -> bool:
        raise NotImplementedError

    def _from_database(self, state: CubeState) -> tuple[str, Algorithm] | None:
        match = self.database.match(self.stage, state)
        if match is None:
            return None
        return match.entry.name, match.solution

    def next_step(self, state: CubeState) -> tuple[str, Algorithm]:
        self._precondition(state)
        found = self._from_database(state)
        if found is not None:
            return found

        macros = [entry.algorithm for entry in self.database.fallbacks(self.stage)]

        def goal(s: CubeState) -> bool:
            return self._done(s) or self.database.match(self.stage, s) is not None

        seq = macro_search(
            state,
            macros,
            goal,
            max_depth=self.config.fallback_depth,
            node_limit=self.config.search_node_limit,
        )
        if seq is None:
            logger.info("pattern_unknown stage=%s", self.stage.value)
            raise NoAlgorithmFound(f"no {self.stage.value} algorithm or fallback for this case")
        return f"{self.stage.value} fallback", seq


class OLLStage(_LastLayerStage):
    stage = Stage.OLL

    def _done(self, state: CubeState) -> bool:
        return is_last_layer_oriented(state)


class PLLStage(_LastLayerStage):
    stage = Stage.PLL

    def _precondition(self, state: CubeState) -> None:
        super()._precondition(state)
        if not is_last_layer_oriented(state):
            raise NoAlgorithmFound("PLL needs an oriented last layer")

    def _done(self, state: CubeState) -> bool:
        return is_solved_up_to_auf(state)

    def next_step(self, state: CubeState) -> tuple[str, Algorithm]:
        k = aligning_turn(state)
        if k is not None:
            return "AUF", AUF_MOVES[k]
        name, alg = super().next_step(state)
        k = aligning_turn(state.apply(alg))
        if k is not None:
            alg = alg + AUF_MOVES[k]
        return name, alg


STAGE_CLASSES: dict[Stage, type[SolverStage]] = {
    Stage.CROSS: CrossStage,
    Stage.F2L: F2LStage,
    Stage.OLL: OLLStage,
    Stage.PLL: PLLStage,
}
