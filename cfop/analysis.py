"""Stage predicates and progress metrics, read relative to the current centers."""

from __future__ import annotations

import numpy as np

from cubesim.geometry import FACE_INDEX, STICKERS_PER_FACE, face_offset
from cubesim.moves import AUF_MOVES
from cubesim.pieces import corner_solved, edge_solved, relative_colors
from cubesim.state import CubeState

from .types import Stage, StageMetric

CROSS_EDGES = (4, 5, 6, 7)

# Slot name -> (corner position, edge position).
F2L_SLOTS = {
    "FR": (4, 8),
    "FL": (5, 9),
    "BL": (6, 10),
    "BR": (7, 11),
}

U_FACE = FACE_INDEX["U"]
_U_STICKERS = tuple(face_offset("U") + i for i in range(STICKERS_PER_FACE) if i != STICKERS_PER_FACE // 2)

# Top rows of the side faces in the order a U turn carries them: F -> L -> B -> R.
LL_SIDES = ("F", "L", "B", "R")
LL_SIDE_ROWS = tuple(tuple(face_offset(face) + c for c in range(3)) for face in LL_SIDES)
_LL_SIDE_STICKERS = tuple(i for row in LL_SIDE_ROWS for i in row)

_AUF_PERMS = tuple(alg.permutation() for alg in AUF_MOVES)


def _rel(state: CubeState | np.ndarray) -> np.ndarray:
    return state if isinstance(state, np.ndarray) else relative_colors(state)


def cross_edges_solved(state: CubeState | np.ndarray) -> int:
    rel = _rel(state)
    return sum(1 for pos in CROSS_EDGES if edge_solved(rel, pos))


def is_cross_solved(state: CubeState | np.ndarray) -> bool:
    return cross_edges_solved(state) == len(CROSS_EDGES)


def solved_slots(state: CubeState | np.ndarray) -> list[str]:
    rel = _rel(state)
    return [
        name
        for name, (corner, edge) in F2L_SLOTS.items()
        if corner_solved(rel, corner) and edge_solved(rel, edge)
    ]


def is_f2l_solved(state: CubeState | np.ndarray) -> bool:
    rel = _rel(state)
    return is_cross_solved(rel) and len(solved_slots(rel)) == len(F2L_SLOTS)


def oriented_top_stickers(state: CubeState | np.ndarray) -> int:
    rel = _rel(state)
    return sum(1 for i in _U_STICKERS if int(rel[i]) == U_FACE)


def is_last_layer_oriented(state: CubeState | np.ndarray) -> bool:
    return oriented_top_stickers(state) == len(_U_STICKERS)


def _matching_side_stickers(rel: np.ndarray) -> int:
    return sum(1 for i in _LL_SIDE_STICKERS if int(rel[i]) == i // STICKERS_PER_FACE)


def aligning_turn(state: CubeState) -> int | None:
    """Number of clockwise U quarter turns that fully solve the cube, if any."""
    for k, perm in enumerate(_AUF_PERMS):
        if state.permuted(perm).is_fully_solved():
            return k
    return None


def is_solved_up_to_auf(state: CubeState) -> bool:
    return aligning_turn(state) is not None


def best_auf_side_matches(state: CubeState) -> int:
    return max(_matching_side_stickers(relative_colors(state.permuted(perm))) for perm in _AUF_PERMS)


def stage_metric(stage: Stage | str, state: CubeState) -> StageMetric:
    stage = Stage.parse(stage)
    if stage is Stage.CROSS:
        value = cross_edges_solved(state)
        return StageMetric(stage, value == len(CROSS_EDGES), value, len(CROSS_EDGES))
    if stage is Stage.F2L:
        rel = relative_colors(state)
        cross = is_cross_solved(rel)
        value = len(solved_slots(rel)) if cross else 0
        return StageMetric(stage, cross and value == len(F2L_SLOTS), value, len(F2L_SLOTS))
    if stage is Stage.OLL:
        rel = relative_colors(state)
        value = oriented_top_stickers(rel)
        complete = value == len(_U_STICKERS) and is_f2l_solved(rel)
        return StageMetric(stage, complete, value, len(_U_STICKERS))
    if stage is Stage.PLL:
        value = best_auf_side_matches(state)
        return StageMetric(stage, state.is_fully_solved(), value, len(_LL_SIDE_STICKERS))
    raise ValueError(f"Stage {stage.value} has no metric")
