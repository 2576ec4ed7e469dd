"""Immutable cube state value."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from .geometry import CENTER_OFFSET, FACE_ORDER, N_FACES, STICKERS_PER_FACE, face_offset
from .moves import Algorithm, Move, as_algorithm
from .state_codec import (
    DEFAULT_COLOR_LETTERS,
    faces_from_mapping,
    faces_to_mapping,
    format_facelets,
    parse_facelets,
    validate_colors,
)


def solved_colors() -> np.ndarray:
    return np.repeat(np.arange(N_FACES, dtype=np.int8), STICKERS_PER_FACE)


class CubeState:
    """Facelet state of a 3x3 cube.

    Colors are ids 0..5 held in a read-only array; moves return new states, so
    a state can be shared between stages without aliasing.
    """

    __slots__ = ("_colors", "palette")

    def __init__(
        self,
        colors: Sequence[int] | np.ndarray,
        palette: Sequence[str] | None = None,
        _trusted: bool = False,
    ):
        arr = np.array(colors, dtype=np.int8) if _trusted else validate_colors(colors)
        arr.setflags(write=False)
        self._colors = arr
        self.palette = tuple(palette) if palette is not None else tuple(DEFAULT_COLOR_LETTERS)
        if len(self.palette) != N_FACES:
            raise ValueError(f"Palette needs {N_FACES} symbols, got {len(self.palette)}")

    @classmethod
    def solved(cls) -> "CubeState":
        return cls(solved_colors(), _trusted=True)

    @classmethod
    def from_string(cls, text: str, palette: Sequence[str] | None = None) -> "CubeState":
        colors, palette = parse_facelets(text, palette)
        return cls(colors, palette, _trusted=True)

    @classmethod
    def from_faces(cls, faces: Mapping[str, Sequence[str | int]]) -> "CubeState":
        colors, palette = faces_from_mapping(faces)
        return cls(colors, palette, _trusted=True)

    @property
    def colors(self) -> np.ndarray:
        return self._colors

    def copy(self) -> "CubeState":
        return CubeState(self._colors.copy(), self.palette, _trusted=True)

    def face(self, face: str) -> np.ndarray:
        start = face_offset(face)
        return self._colors[start : start + STICKERS_PER_FACE]

    def center(self, face: str) -> int:
        return int(self._colors[face_offset(face) + CENTER_OFFSET])

    def centers(self) -> dict[str, int]:
        return {face: self.center(face) for face in FACE_ORDER}

    def permuted(self, perm: np.ndarray) -> "CubeState":
        return CubeState(self._colors[perm], self.palette, _trusted=True)

    def apply(self, moves: "Algorithm | Move | str | Iterable[Move]") -> "CubeState":
        """Return the state after applying a move, algorithm or notation string."""
        alg = as_algorithm(moves)
        if len(alg) == 0:
            return self
        return self.permuted(alg.permutation())

    def is_fully_solved(self) -> bool:
        faces = self._colors.reshape(N_FACES, STICKERS_PER_FACE)
        return bool(np.all(faces == faces[:, :1]))

    def to_string(self) -> str:
        return format_facelets(self._colors, self.palette)

    def to_faces(self) -> dict[str, list[str]]:
        return faces_to_mapping(self._colors, self.palette)

    def to_payload(self) -> dict[str, Any]:
        return {
            "facelets": self.to_string(),
            "colors": self._colors.astype(int).tolist(),
            "solved": self.is_fully_solved(),
        }

    def key(self) -> bytes:
        return self._colors.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CubeState):
            return NotImplemented
        return bool(np.array_equal(self._colors, other._colors))

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        return f"CubeState({self.to_string()!r})"


def create_solved() -> CubeState:
    return CubeState.solved()


def states_equal(a: CubeState, b: CubeState) -> bool:
    return a == b
