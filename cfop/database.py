"""Algorithm database: canonical pattern -> verified algorithm, per stage."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Mapping

from cubesim.moves import AUF_MOVES, Algorithm, as_algorithm
from cubesim.state import CubeState

from .analysis import is_f2l_solved, is_last_layer_oriented, is_solved_up_to_auf
from .catalog import BUILTIN_ALGORITHMS, BUILTIN_FALLBACKS
from .errors import AlgorithmVerificationError, PatternCollisionError
from .patterns import (
    CanonicalPattern,
    OrientationExtractor,
    Pattern,
    PatternExtractor,
    PermutationExtractor,
    pattern_from_string,
    pattern_to_string,
)
from .types import Stage

logger = logging.getLogger(__name__)

LAST_LAYER_STAGES = (Stage.OLL, Stage.PLL)


@dataclass(frozen=True)
class AlgorithmEntry:
    """An algorithm for one last-layer case.

    ``pattern`` is the canonical pattern of the case and ``alignment`` the
    number of U quarter turns that take the algorithm's own setup to that
    canonical orientation. Both are filled in by verification.
    """

    stage: Stage
    name: str
    algorithm: Algorithm
    pattern: Pattern | None = None
    alignment: int = 0
    verified: bool = False
    provenance: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def create(
        cls,
        stage: Stage | str,
        name: str,
        algorithm: Algorithm | str,
        pattern: Pattern | str | None = None,
        provenance: Mapping[str, Any] | None = None,
    ) -> "AlgorithmEntry":
        if isinstance(pattern, str):
            pattern = pattern_from_string(pattern)
        return cls(
            stage=Stage.parse(stage),
            name=name,
            algorithm=as_algorithm(algorithm),
            pattern=tuple(pattern) if pattern is not None else None,
            provenance=dict(provenance or {}),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "name": self.name,
            "algorithm": str(self.algorithm),
            "pattern": pattern_to_string(self.pattern) if self.pattern is not None else None,
            "provenance": dict(self.provenance),
        }


@dataclass(frozen=True)
class MatchResult:
    entry: AlgorithmEntry
    rotation_offset: int
    solution: Algorithm


def default_extractors() -> dict[Stage, PatternExtractor]:
    return {Stage.OLL: OrientationExtractor(), Stage.PLL: PermutationExtractor()}


def stage_goal(stage: Stage) -> Callable[[CubeState], bool]:
    """Completion test an algorithm must reach from its setup."""
    if stage is Stage.OLL:
        return lambda s: is_f2l_solved(s) and is_last_layer_oriented(s)
    if stage is Stage.PLL:
        return is_solved_up_to_auf
    raise ValueError(f"Stage {stage.value} has no algorithm table")


def _check_stage(stage: Stage | str) -> Stage:
    stage = Stage.parse(stage)
    if stage not in LAST_LAYER_STAGES:
        raise ValueError(f"Stage {stage.value} has no algorithm table")
    return stage


class AlgorithmDatabase:
    """Per-stage tables of verified algorithms plus fallback macros.

    Registration is a single-writer operation; lookups never mutate.
    """

    def __init__(self, extractors: Mapping[Stage, PatternExtractor] | None = None):
        self.extractors: dict[Stage, PatternExtractor] = dict(extractors or default_extractors())
        for stage in LAST_LAYER_STAGES:
            self.extractors.setdefault(stage, default_extractors()[stage])
        self._tables: dict[Stage, dict[Pattern, AlgorithmEntry]] = {s: {} for s in LAST_LAYER_STAGES}
        self._fallbacks: dict[Stage, list[AlgorithmEntry]] = {s: [] for s in LAST_LAYER_STAGES}
        self.rejected: list[tuple[str, str, str]] = []

    @classmethod
    def with_builtins(cls, extractors: Mapping[Stage, PatternExtractor] | None = None) -> "AlgorithmDatabase":
        db = cls(extractors)
        for stage_name, items in BUILTIN_ALGORITHMS.items():
            for name, text in items:
                entry = AlgorithmEntry.create(stage_name, name, text, provenance={"source": "builtin"})
                try:
                    db.register(entry)
                except (AlgorithmVerificationError, PatternCollisionError) as exc:
                    db.rejected.append((stage_name, name, str(exc)))
                    logger.warning("builtin_rejected stage=%s name=%s reason=%s", stage_name, name, exc)
        for stage_name, items in BUILTIN_FALLBACKS.items():
            for name, text in items:
                try:
                    db.register_fallback(stage_name, name, text)
                except AlgorithmVerificationError as exc:
                    db.rejected.append((stage_name, name, str(exc)))
                    logger.warning("builtin_fallback_rejected stage=%s name=%s reason=%s", stage_name, name, exc)
        logger.debug(
            "database_ready oll=%d pll=%d rejected=%d",
            len(db._tables[Stage.OLL]),
            len(db._tables[Stage.PLL]),
            len(db.rejected),
        )
        return db

    def __len__(self) -> int:
        return sum(len(t) for t in self._tables.values())

    def entries(self, stage: Stage | str) -> list[AlgorithmEntry]:
        return list(self._tables[_check_stage(stage)].values())

    def fallbacks(self, stage: Stage | str) -> list[AlgorithmEntry]:
        return list(self._fallbacks[_check_stage(stage)])

    def lookup(self, stage: Stage | str, canonical: Pattern) -> AlgorithmEntry | None:
        return self._tables[_check_stage(stage)].get(tuple(canonical))

    def _canonical_setup(self, entry: AlgorithmEntry) -> CubeState:
        setup = CubeState.solved().apply(entry.algorithm.inverse())
        return setup.apply(AUF_MOVES[entry.alignment])

    def verify(self, entry: AlgorithmEntry) -> AlgorithmEntry:
        """Constructively verify an entry and return it with its derived pattern."""
        stage = _check_stage(entry.stage)
        if len(entry.algorithm) == 0:
            raise AlgorithmVerificationError(f"{entry.name}: empty algorithm")

        solved = CubeState.solved()
        setup = solved.apply(entry.algorithm.inverse())
        if setup.centers() != solved.centers():
            raise AlgorithmVerificationError(f"{entry.name}: algorithm moves the centers")
        if not is_f2l_solved(setup):
            raise AlgorithmVerificationError(f"{entry.name}: algorithm disturbs the first two layers")
        if stage is Stage.OLL and is_last_layer_oriented(setup):
            raise AlgorithmVerificationError(f"{entry.name}: setup is already oriented")
        if stage is Stage.PLL:
            if not is_last_layer_oriented(setup):
                raise AlgorithmVerificationError(f"{entry.name}: algorithm changes last-layer orientation")
            if is_solved_up_to_auf(setup):
                raise AlgorithmVerificationError(f"{entry.name}: setup is solved up to a U turn")
        if not stage_goal(stage)(setup.apply(entry.algorithm)):
            raise AlgorithmVerificationError(f"{entry.name}: algorithm does not finish its own setup")

        extractor = self.extractors[stage]
        derived: CanonicalPattern = extractor.canonical_of(setup)
        if entry.pattern is not None:
            supplied = extractor.canonicalize(entry.pattern).canonical
            if supplied != derived.canonical:
                raise AlgorithmVerificationError(
                    f"{entry.name}: supplied pattern {pattern_to_string(supplied)} "
                    f"does not match derived {pattern_to_string(derived.canonical)}"
                )
        return replace(entry, stage=stage, pattern=derived.canonical, alignment=derived.rotation_offset, verified=True)

    def _solves(self, entry: AlgorithmEntry, canonical_setup: CubeState) -> bool:
        solution = AUF_MOVES[(-entry.alignment) % 4] + entry.algorithm
        return stage_goal(entry.stage)(canonical_setup.apply(solution))

    def register(self, entry: AlgorithmEntry) -> AlgorithmEntry:
        """Verify and store an entry; the last valid registration for a pattern wins."""
        verified = self.verify(entry)
        table = self._tables[verified.stage]
        existing = table.get(verified.pattern)
        if existing is not None:
            if not (
                self._solves(verified, self._canonical_setup(existing))
                and self._solves(existing, self._canonical_setup(verified))
            ):
                raise PatternCollisionError(
                    f"{verified.name} and {existing.name} share pattern "
                    f"{pattern_to_string(verified.pattern)} but do not solve each other's case",
                    stage=verified.stage.value,
                    pattern=verified.pattern,
                )
            logger.info(
                "pattern_overwrite stage=%s pattern=%s old=%s new=%s",
                verified.stage.value,
                pattern_to_string(verified.pattern),
                existing.name,
                verified.name,
            )
        table[verified.pattern] = verified
        return verified

    def register_fallback(self, stage: Stage | str, name: str, algorithm: Algorithm | str) -> AlgorithmEntry:
        """Add a macro the stage may chain; it must leave centers and the first two layers intact."""
        stage = _check_stage(stage)
        alg = as_algorithm(algorithm)
        after = CubeState.solved().apply(alg)
        if len(alg) == 0 or after.centers() != CubeState.solved().centers() or not is_f2l_solved(after):
            raise AlgorithmVerificationError(f"{name}: fallback must keep centers and first two layers solved")
        entry = AlgorithmEntry(stage=stage, name=name, algorithm=alg, verified=True, provenance={"source": "fallback"})
        self._fallbacks[stage].append(entry)
        return entry

    def match_pattern(self, stage: Stage | str, pattern: Pattern) -> MatchResult | None:
        stage = _check_stage(stage)
        canonical = self.extractors[stage].canonicalize(pattern)
        entry = self._tables[stage].get(canonical.canonical)
        if entry is None:
            return None
        offset = (canonical.rotation_offset - entry.alignment) % 4
        return MatchResult(entry=entry, rotation_offset=offset, solution=AUF_MOVES[offset] + entry.algorithm)

    def match(self, stage: Stage | str, state: CubeState) -> MatchResult | None:
        stage = _check_stage(stage)
        return self.match_pattern(stage, self.extractors[stage].extract(state))

    def dump_jsonl(self, path: str | Path) -> int:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with path.open("w", encoding="utf-8") as f:
            for stage in LAST_LAYER_STAGES:
                for entry in self._tables[stage].values():
                    f.write(json.dumps(entry.to_record(), sort_keys=True) + "\n")
                    count += 1
        return count

    def load_jsonl(self, path: str | Path) -> int:
        """Register every record of a JSON Lines file; records are re-verified."""
        count = 0
        with Path(path).open("r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                    entry = AlgorithmEntry.create(
                        record["stage"],
                        record["name"],
                        record["algorithm"],
                        record.get("pattern"),
                        record.get("provenance"),
                    )
                except (KeyError, ValueError) as exc:
                    raise ValueError(f"{path}:{line_no}: bad record: {exc}") from exc
                self.register(entry)
                count += 1
        return count


@lru_cache(maxsize=1)
def default_database() -> AlgorithmDatabase:
    return AlgorithmDatabase.with_builtins()
