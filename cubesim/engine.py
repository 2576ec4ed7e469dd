"""Stateful, thread-safe cube session used by the HTTP layer and the CLI."""

from __future__ import annotations

import threading
from typing import Any

import numpy as np

from .geometry import OPPOSITE_FACE
from .moves import FACE_MOVES, Algorithm, Move, as_algorithm
from .state import CubeState


def random_scramble(steps: int, rng: np.random.Generator) -> Algorithm:
    """Random face-turn sequence with no two consecutive turns of the same face.

    A face is also never followed by its opposite and then itself again
    (``R L R``), which would collapse into fewer moves.
    """
    if not isinstance(steps, int) or steps < 0:
        raise ValueError("Scramble steps must be a non-negative integer")

    moves: list[Move] = []
    for _ in range(steps):
        banned: set[str] = set()
        if moves:
            banned.add(moves[-1].face)
            if len(moves) >= 2 and moves[-2].face == OPPOSITE_FACE[moves[-1].face]:
                banned.add(moves[-2].face)
        candidates = [m for m in FACE_MOVES if m.face not in banned]
        moves.append(candidates[int(rng.integers(len(candidates)))])
    return Algorithm(tuple(moves))


class CubeEngine:
    """Thread-safe 3x3 cube session with move history."""

    def __init__(self, initial_state: CubeState | None = None, seed: int | None = None):
        self._lock = threading.RLock()
        self._rng = np.random.default_rng(seed)
        self._state = CubeState.solved() if initial_state is None else initial_state
        self.step_count = 0
        self.history: list[str] = []

    def get_state(self) -> CubeState:
        with self._lock:
            return self._state

    def set_state(self, state: CubeState) -> CubeState:
        with self._lock:
            self._state = state
            self.step_count = 0
            self.history = []
            return self._state

    def reset(self, state: CubeState | None = None) -> CubeState:
        return self.set_state(CubeState.solved() if state is None else state)

    def is_solved(self) -> bool:
        with self._lock:
            return self._state.is_fully_solved()

    def apply(self, moves: Algorithm | Move | str) -> CubeState:
        # Parse before taking the lock so malformed text never changes the session.
        alg = as_algorithm(moves)
        with self._lock:
            self._state = self._state.apply(alg)
            self.step_count += len(alg)
            self.history.extend(str(m) for m in alg)
            return self._state

    def scramble(self, steps: int, seed: int | None = None) -> tuple[CubeState, Algorithm]:
        with self._lock:
            rng = np.random.default_rng(seed) if seed is not None else self._rng
            alg = random_scramble(steps, rng)
            self.apply(alg)
            return self._state, alg

    def state_payload(self) -> dict[str, Any]:
        with self._lock:
            payload = self._state.to_payload()
            payload["step_count"] = self.step_count
            payload["history"] = list(self.history)
            return payload
