"""Last-layer pattern extraction and rotation canonicalization.

A pattern is a fixed-length tuple of small integers read from the top layer.
A clockwise U quarter turn moves every read sticker to another read position,
so it acts on patterns as a fixed index permutation. That permutation is
derived from the U move table at import time, which keeps canonicalization
and algorithm alignment consistent with the move engine by construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from cubesim.geometry import FACE_INDEX, QUARTER_TURNS
from cubesim.pieces import relative_colors
from cubesim.state import CubeState

Pattern = tuple[int, ...]

_U = FACE_INDEX["U"]
# Side face index -> position in the F, L, B, R cycle.
_SIDE_ORDER = {FACE_INDEX["F"]: 0, FACE_INDEX["L"]: 1, FACE_INDEX["B"]: 2, FACE_INDEX["R"]: 3}
NON_SIDE = 4


@dataclass(frozen=True)
class CanonicalPattern:
    canonical: Pattern
    rotation_offset: int


def derive_rotation(positions: Sequence[int]) -> np.ndarray:
    """Index permutation ``rot`` with ``pattern(U state)[rot[i]] == pattern(state)[i]``."""
    u_perm = QUARTER_TURNS[("U", False)]
    where = {int(p): i for i, p in enumerate(positions)}
    rot = np.full(len(positions), -1, dtype=np.int64)
    for j, p in enumerate(positions):
        src = int(u_perm[p])
        if src not in where:
            raise RuntimeError(f"Sticker {p} is fed from {src}, outside the pattern positions")
        rot[where[src]] = j

    if not np.array_equal(np.sort(rot), np.arange(len(positions))):
        raise RuntimeError("Pattern rotation is not a permutation")
    power = np.arange(len(positions))
    for _ in range(4):
        power = power[_inverse(rot)]
    if not np.array_equal(power, np.arange(len(positions))):
        raise RuntimeError("Four pattern rotations must be the identity")
    return rot


def _inverse(perm: np.ndarray) -> np.ndarray:
    return np.argsort(perm)


class PatternExtractor:
    """Reads a pattern from a state and rotates it like a U quarter turn."""

    name = "base"
    stage = ""
    positions: tuple[int, ...] = ()
    alphabet = 2

    def __init__(self) -> None:
        self.rotation = derive_rotation(self.positions)
        self._gather = _inverse(self.rotation)

    @property
    def length(self) -> int:
        return len(self.positions)

    def symbols(self, rel: np.ndarray) -> Pattern:
        raise NotImplementedError

    def extract(self, state: CubeState) -> Pattern:
        return self.symbols(relative_colors(state))

    def validate(self, pattern: Sequence[int]) -> Pattern:
        pattern = tuple(int(v) for v in pattern)
        if len(pattern) != self.length:
            raise ValueError(f"{self.name} pattern needs {self.length} symbols, got {len(pattern)}")
        if any(v < 0 or v >= self.alphabet for v in pattern):
            raise ValueError(f"{self.name} pattern symbols must be in 0..{self.alphabet - 1}")
        return pattern

    def rotate(self, pattern: Sequence[int], k: int = 1) -> Pattern:
        arr = np.asarray(self.validate(pattern), dtype=np.int64)
        for _ in range(k % 4):
            arr = arr[self._gather]
        return tuple(int(v) for v in arr)

    def canonicalize(self, pattern: Sequence[int]) -> CanonicalPattern:
        """Smallest rotation, and the fewest quarter turns that reach it."""
        rotations = [self.rotate(pattern, k) for k in range(4)]
        best = min(rotations)
        return CanonicalPattern(canonical=best, rotation_offset=rotations.index(best))

    def canonical_of(self, state: CubeState) -> CanonicalPattern:
        return self.canonicalize(self.extract(state))


class OrientationExtractor(PatternExtractor):
    """Orientation of every top-layer sticker: 1 where the U color shows.

    Per side (F, L, B, R): the U sticker of the side's left corner, the U
    sticker of its edge, then the side's top row.
    """

    name = "oll"
    stage = "OLL"
    positions = (
        6, 7, 18, 19, 20,
        0, 3, 36, 37, 38,
        2, 1, 45, 46, 47,
        8, 5, 9, 10, 11,
    )
    alphabet = 2

    def symbols(self, rel: np.ndarray) -> Pattern:
        return tuple(1 if int(rel[p]) == _U else 0 for p in self.positions)


class PermutationExtractor(PatternExtractor):
    """Relative color offsets along the side top rows.

    Corners hold their offset from the same side's edge; edges hold the
    offset from their own color to the next side's edge color. A sticker
    that does not show a side color reads as 4. Offsets do not change when
    the whole top layer is recolored by a U turn, so two states share a
    pattern exactly when they differ by U turns before or after.
    """

    name = "pll"
    stage = "PLL"
    positions = (
        18, 19, 20,
        36, 37, 38,
        45, 46, 47,
        9, 10, 11,
    )
    alphabet = 5

    def symbols(self, rel: np.ndarray) -> Pattern:
        values = [_SIDE_ORDER.get(int(rel[p]), NON_SIDE) for p in self.positions]
        out: list[int] = []
        for side in range(4):
            left, edge, right = values[3 * side : 3 * side + 3]
            next_edge = values[3 * ((side + 1) % 4) + 1]
            out.append(_offset(left, edge))
            out.append(_offset(next_edge, edge))
            out.append(_offset(right, edge))
        return tuple(out)


def _offset(value: int, reference: int) -> int:
    if value == NON_SIDE or reference == NON_SIDE:
        return NON_SIDE
    return (value - reference) % 4


class TopFaceExtractor(PatternExtractor):
    """The eight non-center U stickers only.

    Coarse: it cannot tell cases apart whose side stickers differ, such as
    Sune and Antisune setups at some rotations.
    """

    name = "top"
    stage = "OLL"
    positions = (6, 7, 0, 3, 2, 1, 8, 5)
    alphabet = 2

    def symbols(self, rel: np.ndarray) -> Pattern:
        return tuple(1 if int(rel[p]) == _U else 0 for p in self.positions)


EXTRACTORS: dict[str, type[PatternExtractor]] = {
    cls.name: cls for cls in (OrientationExtractor, PermutationExtractor, TopFaceExtractor)
}


def extractor_for(name: str) -> PatternExtractor:
    try:
        return EXTRACTORS[name]()
    except KeyError:
        raise ValueError(f"Unknown pattern extractor: {name!r}") from None


def pattern_to_string(pattern: Sequence[int]) -> str:
    return "".join(str(int(v)) for v in pattern)


def pattern_from_string(text: str) -> Pattern:
    if not text.isdigit():
        raise ValueError(f"Pattern text must be digits, got {text!r}")
    return tuple(int(ch) for ch in text)

