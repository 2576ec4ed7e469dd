"""Solver configuration and YAML loading."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml


@dataclass(frozen=True)
class SolverConfig:
    max_moves_per_stage: int = 100
    max_total_moves: int = 250
    max_attempts: int = 10
    stall_limit: int = 3
    fallback_depth: int = 2
    search_node_limit: int = 2_000_000
    validate_solvability: bool = True

    def __post_init__(self) -> None:
        for name in ("max_moves_per_stage", "max_total_moves", "max_attempts", "stall_limit", "search_node_limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.fallback_depth, bool) or not isinstance(self.fallback_depth, int) or self.fallback_depth < 0:
            raise ValueError(f"fallback_depth must be a non-negative integer, got {self.fallback_depth!r}")
        if not isinstance(self.validate_solvability, bool):
            raise ValueError(f"validate_solvability must be a boolean, got {self.validate_solvability!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SolverConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown solver config keys: {unknown}")
        return cls(**data)

    def override(self, **values: Any) -> "SolverConfig":
        """Copy with the given non-None values replaced (CLI flags over file values)."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: str | Path) -> SolverConfig:
    """Load a YAML file; solver settings live under a ``solver:`` section."""
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: config must be a mapping")
    return SolverConfig.from_mapping(raw.get("solver") or {})
