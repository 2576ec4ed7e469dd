"""Bounded searches used by the stages: cross IDA*, F2L pair search, macro BFS."""

from __future__ import annotations

import heapq
import logging
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from itertools import combinations
from typing import Callable, Sequence

from cubesim.geometry import FACE_INDEX, OPPOSITE_FACE, STICKERS_PER_FACE, destination_map
from cubesim.moves import AUF_MOVES, FACE_MOVES, Algorithm, Move
from cubesim.pieces import CORNER_FACELETS, CORNER_HOME, EDGE_FACELETS, EDGE_HOME, relative_colors
from cubesim.state import CubeState

from .analysis import CROSS_EDGES, F2L_SLOTS, solved_slots
from .errors import NoAlgorithmFound

logger = logging.getLogger(__name__)

CROSS_MAX_DEPTH = 8

# Sticker destination tables: _DEST[m][i] is where sticker i goes under FACE_MOVES[m].
_DEST = tuple(tuple(destination_map(m.permutation())) for m in FACE_MOVES)
_N_MOVES = len(FACE_MOVES)


def _sticker_of(rel, facelets, homes, piece: int, color: int) -> int:
    """Current index of ``piece``'s sticker that shows ``color``."""
    target = frozenset(homes[piece])
    for stickers in facelets:
        colors = [int(rel[i]) for i in stickers]
        if frozenset(colors) == target:
            return stickers[colors.index(color)]
    raise NoAlgorithmFound(f"piece {piece} not found on the cube")


def _allowed_after(prev: int | None) -> list[int]:
    """Moves worth trying after ``prev``: never the same face, and opposite faces in one order only."""
    if prev is None:
        return list(range(_N_MOVES))
    last = FACE_MOVES[prev].face
    out: list[int] = []
    for m, move in enumerate(FACE_MOVES):
        if move.face == last:
            continue
        if move.face == OPPOSITE_FACE[last] and FACE_INDEX[move.face] < FACE_INDEX[last]:
            continue
        out.append(m)
    return out


_SUCCESSORS = {prev: _allowed_after(prev) for prev in [None, *range(_N_MOVES)]}


@lru_cache(maxsize=None)
def _pair_distances(goal_a: int, goal_b: int) -> dict[tuple[int, int], int]:
    """Exact face-turn distance of two edge stickers to their goal locations."""
    start = (goal_a, goal_b)
    dist = {start: 0}
    queue = deque([start])
    while queue:
        a, b = queue.popleft()
        d = dist[(a, b)]
        for dest in _DEST:
            nxt = (dest[a], dest[b])
            if nxt not in dist:
                dist[nxt] = d + 1
                queue.append(nxt)
    return dist


@dataclass
class SearchStats:
    nodes: int = 0


class _NodeLimit(Exception):
    pass


def solve_cross(state: CubeState, max_depth: int = CROSS_MAX_DEPTH, node_limit: int = 2_000_000) -> Algorithm:
    """Shortest face-turn sequence solving the four D-layer edges.

    IDA* over sticker locations with the maximum of pairwise exact distances
    as the heuristic.
    """
    rel = relative_colors(state)
    down = FACE_INDEX["D"]
    goals = tuple(EDGE_FACELETS[pos][0] for pos in CROSS_EDGES)
    start = tuple(_sticker_of(rel, EDGE_FACELETS, EDGE_HOME, pos, down) for pos in CROSS_EDGES)
    pairs = [
        (i, j, _pair_distances(goals[i], goals[j]))
        for i, j in combinations(range(len(goals)), 2)
    ]

    def h(locs: tuple[int, ...]) -> int:
        return max(table[(locs[i], locs[j])] for i, j, table in pairs)

    stats = SearchStats()
    path: list[int] = []

    def dfs(locs: tuple[int, ...], g: int, bound: int, prev: int | None) -> int | None:
        est = g + h(locs)
        if est > bound:
            return est
        if locs == goals:
            return -1
        stats.nodes += 1
        if stats.nodes > node_limit:
            raise _NodeLimit
        best: int | None = None
        for m in _SUCCESSORS[prev]:
            dest = _DEST[m]
            path.append(m)
            res = dfs(tuple(dest[x] for x in locs), g + 1, bound, m)
            if res == -1:
                return -1
            path.pop()
            if res is not None and (best is None or res < best):
                best = res
        return best

    bound = h(start)
    try:
        while bound <= max_depth:
            res = dfs(start, 0, bound, None)
            if res == -1:
                logger.debug("cross_search depth=%d nodes=%d", len(path), stats.nodes)
                return Algorithm(tuple(FACE_MOVES[m] for m in path))
            if res is None:
                break
            bound = res
    except _NodeLimit:
        raise NoAlgorithmFound(f"cross search exceeded {node_limit} nodes") from None
    raise NoAlgorithmFound(f"no cross solution within {max_depth} moves")


# F2L macros: U turns and slot triggers X U^k X'.
_SIDE_QUARTERS = tuple(Move(face, t) for face in ("R", "L", "F", "B") for t in (1, -1))
U_TURNS = tuple(Algorithm((Move("U", t),)) for t in (1, -1, 2))


def _classify_triggers() -> dict[str, list[Algorithm]]:
    solved = CubeState.solved()
    by_slot: dict[str, list[Algorithm]] = {slot: [] for slot in F2L_SLOTS}
    for x in _SIDE_QUARTERS:
        for t in (1, -1, 2):
            trigger = Algorithm((x, Move("U", t), x.inverse()))
            after = solved.apply(trigger)
            broken = [s for s in F2L_SLOTS if s not in solved_slots(after)]
            if _cross_intact(after) and len(broken) == 1:
                by_slot[broken[0]].append(trigger)
    for slot, triggers in by_slot.items():
        if not triggers:
            raise RuntimeError(f"No trigger found for slot {slot}")
    return by_slot


def _cross_intact(state: CubeState) -> bool:
    rel = relative_colors(state)
    return all(all(int(rel[i]) == i // STICKERS_PER_FACE for i in EDGE_FACELETS[pos]) for pos in CROSS_EDGES)


SLOT_TRIGGERS = _classify_triggers()


def _pair_locations(rel, slot: str) -> tuple[int, int]:
    corner, edge = F2L_SLOTS[slot]
    c_loc = _sticker_of(rel, CORNER_FACELETS, CORNER_HOME, corner, CORNER_HOME[corner][0])
    e_loc = _sticker_of(rel, EDGE_FACELETS, EDGE_HOME, edge, EDGE_HOME[edge][0])
    return c_loc, e_loc


@lru_cache(maxsize=None)
def _macro_dest(alg: Algorithm) -> tuple[int, ...]:
    return tuple(destination_map(alg.permutation()))


def solve_slot(state: CubeState, slot: str, node_limit: int = 2_000_000) -> Algorithm:
    """Cheapest macro sequence (in face turns) inserting ``slot``'s pair.

    Only triggers of unsolved slots are used, so solved slots and the cross
    stay intact.
    """
    rel = relative_colors(state)
    done = set(solved_slots(rel))
    if slot in done:
        return Algorithm()
    macros: list[Algorithm] = list(U_TURNS)
    for other, triggers in SLOT_TRIGGERS.items():
        if other not in done:
            macros.extend(triggers)
    dests = [(_macro_dest(m), m) for m in macros]

    corner, edge = F2L_SLOTS[slot]
    goal = (CORNER_FACELETS[corner][0], EDGE_FACELETS[edge][0])
    start = _pair_locations(rel, slot)

    best = {start: 0}
    heap: list[tuple[int, int, tuple[int, int], tuple[int, ...]]] = [(0, 0, start, ())]
    counter = 0
    while heap:
        cost, _, node, path = heapq.heappop(heap)
        if node == goal:
            return Algorithm(tuple(move for idx in path for move in macros[idx])).simplified()
        if cost > best.get(node, cost):
            continue
        counter += 1
        if counter > node_limit:
            break
        for idx, (dest, macro) in enumerate(dests):
            nxt = (dest[node[0]], dest[node[1]])
            ncost = cost + len(macro)
            if ncost < best.get(nxt, ncost + 1):
                best[nxt] = ncost
                heapq.heappush(heap, (ncost, counter * 64 + idx, nxt, path + (idx,)))
    raise NoAlgorithmFound(f"slot {slot} pair cannot be inserted with the available macros")


def macro_search(
    state: CubeState,
    macros: Sequence[Algorithm],
    goal: Callable[[CubeState], bool],
    max_depth: int,
    node_limit: int = 2_000_000,
) -> Algorithm | None:
    """Breadth-first search over (U alignment, macro) steps up to ``max_depth`` steps."""
    if max_depth <= 0 or not macros:
        return None
    steps = [AUF_MOVES[k] + m for k in range(4) for m in macros]
    frontier: list[tuple[CubeState, Algorithm]] = [(state, Algorithm())]
    seen = {state.key()}
    nodes = 0
    for _ in range(max_depth):
        nxt_frontier: list[tuple[CubeState, Algorithm]] = []
        for current, path in frontier:
            for step in steps:
                nodes += 1
                if nodes > node_limit:
                    return None
                nxt = current.apply(step)
                key = nxt.key()
                if key in seen:
                    continue
                seen.add(key)
                candidate = path + step
                if goal(nxt):
                    return candidate
                nxt_frontier.append((nxt, candidate))
        frontier = nxt_frontier
    return None
