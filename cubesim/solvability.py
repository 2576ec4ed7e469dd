"""Reachability check: could this state have come from a solved cube by legal moves?"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np

from .errors import InvalidPieceConfiguration
from .geometry import CENTER_OFFSET, ORIENTATION_PERMUTATIONS, STICKERS_PER_FACE
from .pieces import corner_placements, edge_placements, permutation_parity
from .state import CubeState, solved_colors

_CENTER_INDICES = np.arange(CENTER_OFFSET, 6 * STICKERS_PER_FACE, STICKERS_PER_FACE)


@dataclass
class SolvabilityReport:
    is_solvable: bool
    errors: list[dict[str, str]] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def error_codes(self) -> list[str]:
        return [e["code"] for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _centers_form_rotation(state: CubeState) -> bool:
    """Centers must be a whole-cube rotation of the solved arrangement (no mirror images)."""
    centers = state.colors[_CENTER_INDICES]
    base = solved_colors()
    for perm in ORIENTATION_PERMUTATIONS:
        if np.array_equal(base[perm][_CENTER_INDICES], centers):
            return True
    return False


def check_solvability(state: CubeState) -> SolvabilityReport:
    errors: list[dict[str, str]] = []
    details: dict[str, Any] = {}

    def fail(code: str, message: str) -> None:
        errors.append({"code": code, "message": message})

    if not _centers_form_rotation(state):
        fail("center_arrangement", "Center colors are not a rotation of a real cube")
        details["centers"] = "invalid"
        return SolvabilityReport(False, errors, details)

    try:
        corners = corner_placements(state)
        edges = edge_placements(state)
    except InvalidPieceConfiguration as exc:
        fail("invalid_piece_configuration", str(exc))
        return SolvabilityReport(False, errors, details)

    corner_twist = sum(p.orientation for p in corners) % 3
    edge_flip = sum(p.orientation for p in edges) % 2
    corner_parity = permutation_parity([p.piece for p in corners])
    edge_parity = permutation_parity([p.piece for p in edges])

    details.update(
        {
            "corner_orientation_sum_mod3": corner_twist,
            "edge_orientation_sum_mod2": edge_flip,
            "corner_permutation_parity": corner_parity,
            "edge_permutation_parity": edge_parity,
        }
    )

    if corner_twist != 0:
        fail("corner_orientation", f"Corner twist sum is {corner_twist} mod 3; must be 0")
    if edge_flip != 0:
        fail("edge_orientation", "Edge flip sum is odd; one edge is flipped in place")
    if corner_parity != edge_parity:
        fail(
            "permutation_parity",
            f"Corner parity {corner_parity} differs from edge parity {edge_parity}",
        )

    return SolvabilityReport(not errors, errors, details)
