"""Sticker geometry and layer-turn permutation tables for the 3x3 cube."""

from __future__ import annotations

from collections import deque

import numpy as np

FACE_ORDER = ("U", "R", "F", "D", "L", "B")
FACE_INDEX = {face: i for i, face in enumerate(FACE_ORDER)}
OPPOSITE_FACE = {"U": "D", "D": "U", "R": "L", "L": "R", "F": "B", "B": "F"}
N_FACES = 6
CUBE_SIZE = 3
STICKERS_PER_FACE = CUBE_SIZE * CUBE_SIZE
STATE_SIZE = N_FACES * STICKERS_PER_FACE
CENTER_OFFSET = STICKERS_PER_FACE // 2

# Face frames as seen from outside the cube.
FACE_SPECS = {
    "U": {"normal": (0, 1, 0), "right": (1, 0, 0), "up": (0, 0, -1)},
    "R": {"normal": (1, 0, 0), "right": (0, 0, -1), "up": (0, 1, 0)},
    "F": {"normal": (0, 0, 1), "right": (1, 0, 0), "up": (0, 1, 0)},
    "D": {"normal": (0, -1, 0), "right": (1, 0, 0), "up": (0, 0, 1)},
    "L": {"normal": (-1, 0, 0), "right": (0, 0, 1), "up": (0, 1, 0)},
    "B": {"normal": (0, 0, -1), "right": (-1, 0, 0), "up": (0, 1, 0)},
}

# Turnable letter -> (axis, cubie layers, clockwise angle about the world axis).
# Slices follow the face named in parentheses: M (L), E (D), S (F).
# Rotations follow: x (R), y (U), z (F).
LAYER_TURNS = {
    "U": ("y", (1,), -90),
    "D": ("y", (-1,), +90),
    "R": ("x", (1,), -90),
    "L": ("x", (-1,), +90),
    "F": ("z", (1,), -90),
    "B": ("z", (-1,), +90),
    "M": ("x", (0,), +90),
    "E": ("y", (0,), +90),
    "S": ("z", (0,), -90),
    "x": ("x", (-1, 0, 1), -90),
    "y": ("y", (-1, 0, 1), -90),
    "z": ("z", (-1, 0, 1), -90),
}

FACE_LETTERS = FACE_ORDER
SLICE_LETTERS = ("M", "E", "S")
ROTATION_LETTERS = ("x", "y", "z")

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def face_offset(face: str) -> int:
    return FACE_INDEX[face] * STICKERS_PER_FACE


def _rotation_matrix(axis: str, angle_deg: int) -> np.ndarray:
    """Return integer rotation matrix for +-90 around x/y/z axes."""
    if axis == "x" and angle_deg == +90:
        return np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]], dtype=np.int64)
    if axis == "x" and angle_deg == -90:
        return np.array([[1, 0, 0], [0, 0, 1], [0, -1, 0]], dtype=np.int64)
    if axis == "y" and angle_deg == +90:
        return np.array([[0, 0, 1], [0, 1, 0], [-1, 0, 0]], dtype=np.int64)
    if axis == "y" and angle_deg == -90:
        return np.array([[0, 0, -1], [0, 1, 0], [1, 0, 0]], dtype=np.int64)
    if axis == "z" and angle_deg == +90:
        return np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]], dtype=np.int64)
    if axis == "z" and angle_deg == -90:
        return np.array([[0, 1, 0], [-1, 0, 0], [0, 0, 1]], dtype=np.int64)
    raise ValueError(f"Unsupported rotation: axis={axis}, angle={angle_deg}")


def _face_vectors(face: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    spec = FACE_SPECS[face]
    return (
        np.array(spec["normal"], dtype=np.int64),
        np.array(spec["right"], dtype=np.int64),
        np.array(spec["up"], dtype=np.int64),
    )


def _build_sticker_model() -> tuple[list[dict[str, np.ndarray]], dict[tuple[int, int, int], str]]:
    """Sticker points use doubled coordinates: point = 2 * cubie + normal."""
    stickers: list[dict[str, np.ndarray]] = []
    normal_to_face: dict[tuple[int, int, int], str] = {}

    for face in FACE_ORDER:
        n, r, up = _face_vectors(face)
        normal_to_face[tuple(int(v) for v in n)] = face

        for row in range(CUBE_SIZE):
            for col in range(CUBE_SIZE):
                cubie = n + (col - 1) * r + (1 - row) * up
                idx = face_offset(face) + row * CUBE_SIZE + col
                stickers.append(
                    {
                        "idx": idx,
                        "face": face,
                        "row": row,
                        "col": col,
                        "center": 2 * cubie + n,
                        "normal": n,
                        "cubie": cubie,
                    }
                )

    stickers.sort(key=lambda s: s["idx"])
    return stickers, normal_to_face


_STICKERS, _NORMAL_TO_FACE = _build_sticker_model()


def _face_row_col_from_center(face: str, center: np.ndarray) -> tuple[int, int]:
    n, r, up = _face_vectors(face)
    offset = center - 3 * n
    col_step = int(np.dot(offset, r))
    row_step = int(np.dot(offset, up))

    if col_step not in (-2, 0, 2) or row_step not in (-2, 0, 2):
        raise ValueError(f"Invalid center for face {face}: {center}")

    return 1 - row_step // 2, col_step // 2 + 1


def _sticker_index(center: np.ndarray, normal: np.ndarray) -> int:
    face = _NORMAL_TO_FACE[tuple(int(v) for v in normal)]
    row, col = _face_row_col_from_center(face, center)
    return face_offset(face) + row * CUBE_SIZE + col


def _generate_layer_permutation(axis: str, layers: tuple[int, ...], angle: int) -> np.ndarray:
    rot = _rotation_matrix(axis, angle)
    axis_idx = _AXIS_INDEX[axis]
    perm = np.empty(STATE_SIZE, dtype=np.int64)

    for sticker in _STICKERS:
        center = sticker["center"]
        normal = sticker["normal"]
        if int(sticker["cubie"][axis_idx]) in layers:
            center = rot @ center
            normal = rot @ normal
        perm[_sticker_index(center, normal)] = int(sticker["idx"])

    return perm


def quarter_turn_permutation(letter: str, wide: bool = False) -> np.ndarray:
    """Permutation for one clockwise quarter turn: new_state = state[perm]."""
    if letter not in LAYER_TURNS:
        raise ValueError(f"Unknown turn letter: {letter}")
    axis, layers, angle = LAYER_TURNS[letter]
    if wide:
        if letter not in FACE_LETTERS:
            raise ValueError(f"Only face turns can be wide, got {letter}")
        layers = layers + (0,)
    return _generate_layer_permutation(axis, layers, angle)


def compose(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """Permutation equal to applying ``first`` then ``second``."""
    return first[second]


def invert(perm: np.ndarray) -> np.ndarray:
    return np.argsort(perm)


def destination_map(perm: np.ndarray) -> list[int]:
    """dest[i] is where the sticker currently at i ends up after ``perm``."""
    return [int(v) for v in invert(perm)]


def _generate_quarter_turns() -> dict[tuple[str, bool], np.ndarray]:
    table: dict[tuple[str, bool], np.ndarray] = {}
    for letter in LAYER_TURNS:
        table[(letter, False)] = quarter_turn_permutation(letter)
    for letter in FACE_LETTERS:
        table[(letter, True)] = quarter_turn_permutation(letter, wide=True)
    for key, perm in table.items():
        if not np.array_equal(np.sort(perm), np.arange(STATE_SIZE)):
            raise RuntimeError(f"Turn {key} does not produce a permutation")
    return table


QUARTER_TURNS = _generate_quarter_turns()


def _matrix_key(mat: np.ndarray) -> tuple[int, ...]:
    return tuple(int(v) for v in mat.reshape(-1))


def _generate_global_orientation_matrices() -> list[np.ndarray]:
    gens = [_rotation_matrix("x", +90), _rotation_matrix("y", +90), _rotation_matrix("z", +90)]
    identity = np.eye(3, dtype=np.int64)

    mats: list[np.ndarray] = []
    seen: set[tuple[int, ...]] = set()
    q: deque[np.ndarray] = deque([identity])

    while q:
        mat = q.popleft()
        key = _matrix_key(mat)
        if key in seen:
            continue
        seen.add(key)
        mats.append(mat)
        for g in gens:
            q.append(g @ mat)

    if len(mats) != 24:
        raise RuntimeError(f"Expected 24 orientation matrices, got {len(mats)}")
    return mats


def _generate_orientation_permutations() -> np.ndarray:
    mats = _generate_global_orientation_matrices()
    perms = np.empty((len(mats), STATE_SIZE), dtype=np.int64)

    for i, mat in enumerate(mats):
        perm = np.empty(STATE_SIZE, dtype=np.int64)
        for sticker in _STICKERS:
            perm[_sticker_index(mat @ sticker["center"], mat @ sticker["normal"])] = int(sticker["idx"])
        perms[i] = perm

    return perms


# Whole-cube reorientations; used to compare states independent of how the cube is held.
ORIENTATION_PERMUTATIONS = _generate_orientation_permutations()
