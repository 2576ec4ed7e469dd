"""Built-in last-layer algorithm catalog.

Entries are (name, algorithm) in standard notation. Patterns are not stored
here: the database derives each entry's canonical pattern from the setup the
algorithm solves, so entries only need to be correct algorithms.
"""

from __future__ import annotations

OLL_ALGORITHMS: tuple[tuple[str, str], ...] = (
    # Corners only (OCLL)
    ("OLL 21 H", "R U2 R' U' R U R' U' R U' R'"),
    ("OLL 22 Pi", "R U2 R2 U' R2 U' R2 U2 R"),
    ("OLL 23 Headlights", "R2 D' R U2 R' D R U2 R"),
    ("OLL 24 T", "r U R' U' r' F R F'"),
    ("OLL 25 Bowtie", "F' r U R' U' r' F R"),
    ("OLL 26 Antisune", "R U2 R' U' R U' R'"),
    ("OLL 27 Sune", "R U R' U R U2 R'"),
    # Dot
    ("OLL 1", "R U2 R2 F R F' U2 R' F R F'"),
    ("OLL 2", "F R U R' U' F' f R U R' U' f'"),
    ("OLL 3", "f R U R' U' f' U' F R U R' U' F'"),
    ("OLL 4", "f R U R' U' f' U F R U R' U' F'"),
    ("OLL 17", "F R' F' R2 r' U R U' R' U' M'"),
    ("OLL 18", "r U R' U R U2 r2 U' R U' R' U2 r"),
    ("OLL 19", "r' R U R U R' U' M' R' F R F'"),
    ("OLL 20", "r U R' U' M2 U R U' R' U' M'"),
    # Squares and small lightning
    ("OLL 5", "r' U2 R U R' U r"),
    ("OLL 6", "r U2 R' U' R U' r'"),
    ("OLL 7", "r U R' U R U2 r'"),
    ("OLL 8", "l' U' L U' L' U2 l"),
    ("OLL 11", "r U R' U R' F R F' R U2 r'"),
    ("OLL 12", "M' R' U' R U' R' U2 R U' R r'"),
    # Fish and knight moves
    ("OLL 9", "R U R' U' R' F R2 U R' U' F'"),
    ("OLL 10", "R U R' U R' F R F' R U2 R'"),
    ("OLL 13", "F U R U' R2 F' R U R U' R'"),
    ("OLL 14", "R' F R U R' F' R F U' F'"),
    ("OLL 15", "l' U' l L' U' L U l' U l"),
    ("OLL 16", "r U r' R U R' U' r U' r'"),
    ("OLL 35", "R U2 R2 F R F' R U2 R'"),
    ("OLL 37", "F R' F' R U R U' R'"),
    # Awkward, lines, P and T shapes
    ("OLL 28", "r U R' U' M U R U' R'"),
    ("OLL 29", "R U R' U' R U' R' F' U' F R U R'"),
    ("OLL 30", "F R' F R2 U' R' U' R U R' F2"),
    ("OLL 31", "R' U' F U R U' R' F' R"),
    ("OLL 32", "L U F' U' L' U L F L'"),
    ("OLL 33", "R U R' U' R' F R F'"),
    ("OLL 34", "R U R2 U' R' F R U R U' F'"),
    ("OLL 36", "L' U' L U' L' U L U L F' L' F"),
    ("OLL 38", "R U R' U R U' R' U' R' F R F'"),
    ("OLL 39", "L F' L' U' L U F U' L'"),
    ("OLL 40", "R' F R U R' U' F' U R"),
    ("OLL 41", "R U R' U R U2 R' F R U R' U' F'"),
    ("OLL 42", "R' U' R U' R' U2 R F R U R' U' F'"),
    ("OLL 43", "F' U' L' U L F"),
    ("OLL 44", "F U R U' R' F'"),
    ("OLL 45", "F R U R' U' F'"),
    ("OLL 46", "R' U' R' F R F' U R"),
    ("OLL 47", "R' U' R' F R F' R' F R F' U R"),
    ("OLL 48", "F R U R' U' R U R' U' F'"),
    ("OLL 49", "r U' r2 U r2 U r2 U' r"),
    ("OLL 50", "r' U r2 U' r2 U' r2 U r'"),
    ("OLL 51", "F U R U' R' U R U' R' F'"),
    ("OLL 52", "R U R' U R U' B U' B' R'"),
    ("OLL 53", "l' U2 L U L' U' L U L' U l"),
    ("OLL 54", "r U2 R' U' R U R' U' R U' r'"),
    ("OLL 55", "R' F R U R U' R2 F' R2 U' R' U R U R'"),
    ("OLL 56", "r' U' r U' R' U R U' R' U R r' U r"),
    ("OLL 57", "R U R' U' M' U R U' r'"),
)

PLL_ALGORITHMS: tuple[tuple[str, str], ...] = (
    ("Aa", "R' F R' B2 R F' R' B2 R2"),
    ("Ab", "R2 B2 R F R' B2 R F' R"),
    ("E", "x' R U' R' D R U R' D' R U R' D R U' R' D' x"),
    ("F", "R' U' F' R U R' U' R' F R2 U' R' U' R U R' U R"),
    ("Ga", "R2 U R' U R' U' R U' R2 D U' R' U R D'"),
    ("Gb", "R' U' R U D' R2 U R' U R U' R U' R2 D"),
    ("Gc", "R2 U' R U' R U R' U R2 D' U R U' R' D"),
    ("Gd", "R U R' U' D R2 U' R U' R' U R' U R2 D'"),
    ("H", "M2 U M2 U2 M2 U M2"),
    ("Ja", "R' U L' U2 R U' R' U2 R L"),
    ("Jb", "R U R' F' R U R' U' R' F R2 U' R'"),
    ("Na", "R U R' U R U R' F' R U R' U' R' F R2 U' R' U2 R U' R'"),
    ("Nb", "R' U R U' R' F' U' F R U R' F R' F' R U' R"),
    ("Ra", "R U' R' U' R U R D R' U' R D' R' U2 R'"),
    ("Rb", "R2 F R U R U' R' F' R U2 R' U2 R"),
    ("T", "R U R' U' R' F R2 U' R' U' R U R' F'"),
    ("Ua", "R U' R U R U R U' R' U' R2"),
    ("Ub", "R2 U R U R' U' R' U' R' U R'"),
    ("V", "R' U R' U' B' R' B2 U' B' U B' R B R"),
    ("Y", "F R U' R' U' R U R' F' R U R' U' R' F R F'"),
    ("Z", "M' U M2 U M2 U M' U2 M2"),
)

# Short macros the OLL/PLL stages may chain when the database has no entry.
OLL_FALLBACKS: tuple[tuple[str, str], ...] = (
    ("Edge flip F", "F R U R' U' F'"),
    ("Edge flip f", "f R U R' U' f'"),
    ("Sune", "R U R' U R U2 R'"),
    ("Antisune", "R U2 R' U' R U' R'"),
)

PLL_FALLBACKS: tuple[tuple[str, str], ...] = (
    ("T", "R U R' U' R' F R2 U' R' U' R U R' F'"),
    ("Y", "F R U' R' U' R U R' F' R U R' U' R' F R F'"),
    ("Ua", "R U' R U R U R U' R' U' R2"),
    ("Ub", "R2 U R U R' U' R' U' R' U R'"),
)

BUILTIN_ALGORITHMS = {"OLL": OLL_ALGORITHMS, "PLL": PLL_ALGORITHMS}
BUILTIN_FALLBACKS = {"OLL": OLL_FALLBACKS, "PLL": PLL_FALLBACKS}
