"""Corner and edge piece tables over the 54-sticker layout.

Each corner lists its U/D sticker first and then the other two stickers in
clockwise order; each edge lists its U/D (or F/B for middle-layer edges)
sticker first. Piece colors are always read relative to the current centers.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidPieceConfiguration
from .geometry import FACE_ORDER, STICKERS_PER_FACE
from .state import CubeState

CORNER_NAMES = ("URF", "UFL", "ULB", "UBR", "DFR", "DLF", "DBL", "DRB")
CORNER_FACELETS = (
    (8, 9, 20),
    (6, 18, 38),
    (0, 36, 47),
    (2, 45, 11),
    (29, 26, 15),
    (27, 44, 24),
    (33, 53, 42),
    (35, 17, 51),
)

EDGE_NAMES = ("UR", "UF", "UL", "UB", "DR", "DF", "DL", "DB", "FR", "FL", "BL", "BR")
EDGE_FACELETS = (
    (5, 10),
    (7, 19),
    (3, 37),
    (1, 46),
    (32, 16),
    (28, 25),
    (30, 43),
    (34, 52),
    (23, 12),
    (21, 41),
    (50, 39),
    (48, 14),
)


@dataclass(frozen=True)
class PiecePlacement:
    """Piece ``piece`` sits at ``position`` with the given orientation."""

    piece: int
    position: int
    orientation: int


def relative_colors(state: CubeState) -> np.ndarray:
    """Recolor stickers as face indices: sticker value k means "color of face k's center"."""
    lookup = np.empty(len(FACE_ORDER), dtype=np.int8)
    for face_idx, face in enumerate(FACE_ORDER):
        lookup[state.center(face)] = face_idx
    return lookup[state.colors]


def _home_colors(facelets: tuple[int, ...]) -> tuple[int, ...]:
    return tuple(i // STICKERS_PER_FACE for i in facelets)


CORNER_HOME = tuple(_home_colors(f) for f in CORNER_FACELETS)
EDGE_HOME = tuple(_home_colors(f) for f in EDGE_FACELETS)


def _place(
    rel: np.ndarray,
    facelets: tuple[tuple[int, ...], ...],
    homes: tuple[tuple[int, ...], ...],
    kind: str,
) -> list[PiecePlacement]:
    by_set = {frozenset(h): i for i, h in enumerate(homes)}
    placements: list[PiecePlacement] = []
    seen: dict[int, int] = {}

    for position, stickers in enumerate(facelets):
        colors = tuple(int(rel[i]) for i in stickers)
        piece = by_set.get(frozenset(colors))
        if piece is None or len(set(colors)) != len(colors):
            raise InvalidPieceConfiguration(
                f"{kind} at position {position} shows colors {colors} that match no piece"
            )
        if piece in seen:
            raise InvalidPieceConfiguration(
                f"{kind} piece {piece} appears at positions {seen[piece]} and {position}"
            )
        seen[piece] = position
        # Orientation = where the piece's reference sticker color sits.
        orientation = colors.index(homes[piece][0])
        placements.append(PiecePlacement(piece=piece, position=position, orientation=orientation))

    return placements


def corner_placements(state: CubeState) -> list[PiecePlacement]:
    return _place(relative_colors(state), CORNER_FACELETS, CORNER_HOME, "corner")


def edge_placements(state: CubeState) -> list[PiecePlacement]:
    return _place(relative_colors(state), EDGE_FACELETS, EDGE_HOME, "edge")


def corner_solved(rel: np.ndarray, position: int) -> bool:
    return all(int(rel[i]) == i // STICKERS_PER_FACE for i in CORNER_FACELETS[position])


def edge_solved(rel: np.ndarray, position: int) -> bool:
    return all(int(rel[i]) == i // STICKERS_PER_FACE for i in EDGE_FACELETS[position])


def permutation_parity(mapping: list[int]) -> int:
    """Parity (0 even, 1 odd) of a permutation given as ``mapping[i] = image``."""
    seen = [False] * len(mapping)
    parity = 0
    for start in range(len(mapping)):
        if seen[start]:
            continue
        length = 0
        i = start
        while not seen[i]:
            seen[i] = True
            i = mapping[i]
            length += 1
        parity ^= (length - 1) & 1
    return parity
