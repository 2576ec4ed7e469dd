"""Shared dataclasses for the solver pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cubesim.state import CubeState


class Stage(str, Enum):
    CROSS = "CROSS"
    F2L = "F2L"
    OLL = "OLL"
    PLL = "PLL"
    DONE = "DONE"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, value: "Stage | str") -> "Stage":
        if isinstance(value, Stage):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown stage: {value!r}") from None


SOLVING_STAGES = (Stage.CROSS, Stage.F2L, Stage.OLL, Stage.PLL)


@dataclass(frozen=True)
class StageMetric:
    """``value`` out of ``maximum``; complete means the stage goal holds."""

    stage: Stage
    complete: bool
    value: int
    maximum: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "complete": self.complete,
            "value": self.value,
            "maximum": self.maximum,
        }


@dataclass(frozen=True)
class AppliedAlgorithm:
    stage: Stage
    name: str
    algorithm: str
    move_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "name": self.name,
            "algorithm": self.algorithm,
            "move_count": self.move_count,
        }


@dataclass
class StageReport:
    stage: Stage
    success: bool
    skipped: bool
    moves: int
    attempts: int
    metric_before: StageMetric
    metric_after: StageMetric
    applied: list[AppliedAlgorithm] = field(default_factory=list)
    error: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "success": self.success,
            "skipped": self.skipped,
            "moves": self.moves,
            "attempts": self.attempts,
            "metric_before": self.metric_before.to_dict(),
            "metric_after": self.metric_after.to_dict(),
            "applied": [a.to_dict() for a in self.applied],
            "error": self.error,
            "error_message": self.error_message,
        }


@dataclass
class SolveResult:
    success: bool
    applied_algorithms: list[AppliedAlgorithm]
    total_moves: int
    final_state: CubeState
    final_stage: Stage
    stage_reports: list[StageReport] = field(default_factory=list)
    error: str | None = None
    error_message: str | None = None

    def solution(self) -> str:
        return " ".join(a.algorithm for a in self.applied_algorithms if a.algorithm)

    def stage_moves(self) -> dict[str, int]:
        return {r.stage.value: r.moves for r in self.stage_reports}

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_moves": self.total_moves,
            "solution": self.solution(),
            "final_stage": self.final_stage.value,
            "final_state": self.final_state.to_string(),
            "applied_algorithms": [a.to_dict() for a in self.applied_algorithms],
            "stage_reports": [r.to_dict() for r in self.stage_reports],
            "error": self.error,
            "error_message": self.error_message,
        }
