"""Move notation: parsing, formatting, inversion and permutation tables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Iterator

import numpy as np

from .errors import MalformedMoveNotation
from .geometry import FACE_LETTERS, LAYER_TURNS, QUARTER_TURNS, STATE_SIZE, compose, invert

VALID_TURNS = (1, -1, 2)

_TOKEN_RE = re.compile(r"^(?:(?P<face>[URFDLB])(?P<w>w)?|(?P<wide>[urfdlb])|(?P<other>[MESxyz]))(?P<suffix>2'|2|')?$")


@dataclass(frozen=True)
class Move:
    """One layer turn: ``turns`` is 1 (clockwise), -1 (counter-clockwise) or 2."""

    face: str
    turns: int = 1
    wide: bool = False

    def __post_init__(self) -> None:
        if self.face not in LAYER_TURNS:
            raise ValueError(f"Unknown move face: {self.face!r}")
        if self.turns not in VALID_TURNS:
            raise ValueError(f"Move turns must be one of {VALID_TURNS}, got {self.turns}")
        if self.wide and self.face not in FACE_LETTERS:
            raise ValueError(f"Only face turns can be wide, got {self.face}")

    @property
    def layer(self) -> tuple[str, bool]:
        return self.face, self.wide

    def inverse(self) -> "Move":
        if self.turns == 2:
            return self
        return Move(self.face, -self.turns, self.wide)

    def permutation(self) -> np.ndarray:
        return _move_permutation(self.face, self.turns, self.wide)

    def __str__(self) -> str:
        letter = self.face.lower() if self.wide else self.face
        suffix = {1: "", -1: "'", 2: "2"}[self.turns]
        return letter + suffix

    @classmethod
    def parse(cls, token: str, position: int | None = None) -> "Move":
        match = _TOKEN_RE.match(token)
        if match is None:
            where = "" if position is None else f" at position {position}"
            raise MalformedMoveNotation(f"Malformed move {token!r}{where}", token=token, position=position)

        if match.group("face"):
            face, wide = match.group("face"), bool(match.group("w"))
        elif match.group("wide"):
            face, wide = match.group("wide").upper(), True
        else:
            face, wide = match.group("other"), False

        suffix = match.group("suffix") or ""
        turns = 2 if suffix.startswith("2") else (-1 if suffix == "'" else 1)
        return cls(face, turns, wide)


@lru_cache(maxsize=None)
def _move_permutation(face: str, turns: int, wide: bool) -> np.ndarray:
    quarter = QUARTER_TURNS[(face, wide)]
    if turns == 1:
        perm = quarter
    elif turns == 2:
        # Half turn is two clockwise quarter turns.
        perm = compose(quarter, quarter)
    else:
        perm = invert(quarter)
    perm = np.array(perm, dtype=np.int64)
    perm.setflags(write=False)
    return perm


def parse_moves(text: str) -> list[Move]:
    """Parse whitespace-separated moves; raises on the first malformed token."""
    if not isinstance(text, str):
        raise MalformedMoveNotation(f"Move notation must be a string, got {type(text).__name__}")
    moves: list[Move] = []
    for match in re.finditer(r"\S+", text):
        moves.append(Move.parse(match.group(0), position=match.start()))
    return moves


def _merge_turns(a: int, b: int) -> int:
    return (a + b) % 4


def _turns_from_quarters(q: int) -> int | None:
    return {0: None, 1: 1, 2: 2, 3: -1}[q % 4]


@dataclass(frozen=True)
class Algorithm:
    """Immutable ordered sequence of moves."""

    moves: tuple[Move, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "moves", tuple(self.moves))

    @classmethod
    def parse(cls, text: str) -> "Algorithm":
        return cls(tuple(parse_moves(text)))

    @classmethod
    def of(cls, moves: Iterable[Move | str]) -> "Algorithm":
        out: list[Move] = []
        for m in moves:
            out.append(m if isinstance(m, Move) else Move.parse(m))
        return cls(tuple(out))

    def __iter__(self) -> Iterator[Move]:
        return iter(self.moves)

    def __len__(self) -> int:
        return len(self.moves)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return Algorithm(self.moves[idx])
        return self.moves[idx]

    def __add__(self, other: "Algorithm") -> "Algorithm":
        if not isinstance(other, Algorithm):
            return NotImplemented
        return Algorithm(self.moves + other.moves)

    def __str__(self) -> str:
        return " ".join(str(m) for m in self.moves)

    def inverse(self) -> "Algorithm":
        return Algorithm(tuple(m.inverse() for m in reversed(self.moves)))

    def simplified(self) -> "Algorithm":
        """Merge consecutive turns of the same layer; cancelled turns vanish."""
        stack: list[Move] = []
        for move in self.moves:
            if stack and stack[-1].layer == move.layer:
                prev = stack.pop()
                q = _merge_turns(prev.turns % 4, move.turns % 4)
                turns = _turns_from_quarters(q)
                if turns is not None:
                    stack.append(Move(move.face, turns, move.wide))
            else:
                stack.append(move)
        return Algorithm(tuple(stack))

    def permutation(self) -> np.ndarray:
        """Single permutation equivalent to applying the whole sequence."""
        perm = np.arange(STATE_SIZE, dtype=np.int64)
        for move in self.moves:
            perm = compose(perm, move.permutation())
        return perm


def as_algorithm(value: "Algorithm | Move | str | Iterable[Move]") -> Algorithm:
    if isinstance(value, Algorithm):
        return value
    if isinstance(value, Move):
        return Algorithm((value,))
    if isinstance(value, str):
        return Algorithm.parse(value)
    return Algorithm.of(value)


# Quarter and half turns of the six outer faces; the search move set.
FACE_MOVES: tuple[Move, ...] = tuple(Move(face, turns) for face in FACE_LETTERS for turns in VALID_TURNS)

AUF_MOVES: tuple[Algorithm, ...] = (
    Algorithm(),
    Algorithm((Move("U", 1),)),
    Algorithm((Move("U", 2),)),
    Algorithm((Move("U", -1),)),
)
