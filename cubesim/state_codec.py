"""State validation and codec helpers."""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np

from .errors import InvalidCubeState
from .geometry import CENTER_OFFSET, FACE_ORDER, N_FACES, STATE_SIZE, STICKERS_PER_FACE

DEFAULT_COLOR_LETTERS = "WRGYOB"
NUMERIC_COLOR_LETTERS = "012345"


def validate_colors(state: Sequence[int] | np.ndarray) -> np.ndarray:
    """Validate color ids and return a canonical flat int8 copy (length 54)."""
    arr = np.asarray(state)
    if arr.ndim == 2:
        if arr.shape != (N_FACES, STICKERS_PER_FACE):
            raise InvalidCubeState(
                f"Faces array must have shape ({N_FACES}, {STICKERS_PER_FACE}), got {arr.shape}"
            )
        arr = arr.reshape(-1)
    if arr.ndim != 1 or arr.size != STATE_SIZE:
        raise InvalidCubeState(f"State must have {STATE_SIZE} stickers, got {arr.size}")
    if not np.issubdtype(arr.dtype, np.integer):
        raise InvalidCubeState("State must contain integer color ids")

    arr = arr.astype(np.int16)
    if np.any(arr < 0) or np.any(arr >= N_FACES):
        raise InvalidCubeState("State contains invalid color ids; allowed values are 0..5")

    counts = np.bincount(arr, minlength=N_FACES)
    if not np.all(counts == STICKERS_PER_FACE):
        raise InvalidCubeState(
            f"Invalid sticker counts {counts.tolist()}; each color must appear exactly 9 times"
        )

    centers = arr[CENTER_OFFSET::STICKERS_PER_FACE]
    if len(set(int(c) for c in centers)) != N_FACES:
        raise InvalidCubeState("Face centers must show six distinct colors")

    return arr.astype(np.int8)


def _symbols_to_colors(
    symbols: Sequence[str], palette: Sequence[str] | None = None
) -> tuple[np.ndarray, list[str]]:
    """Map symbols to color ids.

    Without an explicit palette the default letters are used when they match,
    otherwise the face centers in U,R,F,D,L,B order define the ids.
    """
    if len(symbols) != STATE_SIZE:
        raise InvalidCubeState(f"State must have {STATE_SIZE} stickers, got {len(symbols)}")

    if palette is None:
        if set(symbols) == set(DEFAULT_COLOR_LETTERS):
            palette = list(DEFAULT_COLOR_LETTERS)
        elif set(symbols) == set(NUMERIC_COLOR_LETTERS):
            palette = list(NUMERIC_COLOR_LETTERS)
        else:
            palette = [symbols[i * STICKERS_PER_FACE + CENTER_OFFSET] for i in range(N_FACES)]
    palette = list(palette)
    if len(set(palette)) != N_FACES:
        raise InvalidCubeState(f"Face centers must show six distinct symbols, got {palette}")

    lookup = {sym: i for i, sym in enumerate(palette)}
    unknown = sorted({s for s in symbols if s not in lookup})
    if unknown:
        raise InvalidCubeState(f"Unknown sticker symbols: {unknown}")

    colors = np.array([lookup[s] for s in symbols], dtype=np.int16)
    return validate_colors(colors), palette


def parse_facelets(text: str, palette: Sequence[str] | None = None) -> tuple[np.ndarray, list[str]]:
    """Parse a 54-character facelet string; whitespace is ignored."""
    symbols = [ch for ch in text if not ch.isspace()]
    return _symbols_to_colors(symbols, palette)


def format_facelets(state: Sequence[int] | np.ndarray, letters: str | Sequence[str] = DEFAULT_COLOR_LETTERS) -> str:
    colors = validate_colors(state)
    if len(letters) != N_FACES:
        raise ValueError(f"Need {N_FACES} color letters, got {len(letters)}")
    return "".join(letters[int(c)] for c in colors)


def faces_from_mapping(faces: Mapping[str, Sequence[str | int]]) -> tuple[np.ndarray, list[str]]:
    """Build a state from ``{face: [9 symbols]}``; all six faces are required."""
    missing = [f for f in FACE_ORDER if f not in faces]
    if missing:
        raise InvalidCubeState(f"Missing faces: {missing}")
    extra = sorted(set(faces) - set(FACE_ORDER))
    if extra:
        raise InvalidCubeState(f"Unknown faces: {extra}")

    symbols: list[str] = []
    for face in FACE_ORDER:
        values = list(faces[face])
        if len(values) != STICKERS_PER_FACE:
            raise InvalidCubeState(
                f"Face {face} must have {STICKERS_PER_FACE} stickers, got {len(values)}"
            )
        symbols.extend(str(v) for v in values)
    return _symbols_to_colors(symbols)


def faces_to_mapping(
    state: Sequence[int] | np.ndarray, letters: str | Sequence[str] = DEFAULT_COLOR_LETTERS
) -> dict[str, list[str]]:
    text = format_facelets(state, letters)
    return {
        face: list(text[i * STICKERS_PER_FACE : (i + 1) * STICKERS_PER_FACE])
        for i, face in enumerate(FACE_ORDER)
    }
