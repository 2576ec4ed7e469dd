import json
import tempfile
import unittest
from pathlib import Path

from cfop.analysis import is_f2l_solved, is_last_layer_oriented, is_solved_up_to_auf
from cfop.database import AlgorithmDatabase, AlgorithmEntry, default_database
from cfop.errors import AlgorithmVerificationError, PatternCollisionError
from cfop.patterns import OrientationExtractor, TopFaceExtractor, pattern_to_string
from cfop.types import Stage
from cubesim.moves import AUF_MOVES, Algorithm
from cubesim.state import CubeState

SUNE = "R U R' U R U2 R'"
ANTISUNE = "R U2 R' U' R U' R'"

OLL_CASES = {
    "sune": SUNE,
    "antisune": ANTISUNE,
    "edge flip": "F R U R' U' F'",
}
PLL_CASES = {
    "T": "R U R' U' R' F R2 U' R' U' R U R' F'",
    "Ua": "R U' R U R U R U' R' U' R2",
    "Ub": "R2 U R U R' U' R' U' R' U R'",
    "H": "M2 U M2 U2 M2 U M2",
    "Jb": "R U R' F' R U R' U' R' F R2 U' R'",
    "Aa": "R' F R' B2 R F' R' B2 R2",
}


def setup_for(algorithm: str) -> CubeState:
    return CubeState.solved().apply(Algorithm.parse(algorithm).inverse())


class TestBuiltinMatching(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.db = default_database()

    def test_builtins_loaded(self):
        self.assertGreater(len(self.db.entries("OLL")), 0)
        self.assertGreater(len(self.db.entries("PLL")), 0)
        self.assertEqual(len(self.db.fallbacks("OLL")), 4)
        self.assertEqual(len(self.db.fallbacks("PLL")), 4)
        for entry in self.db.entries("OLL") + self.db.entries("PLL"):
            self.assertTrue(entry.verified)
            self.assertIn(entry.alignment, range(4))

    def test_oll_cases_match_in_every_orientation(self):
        for label, alg in OLL_CASES.items():
            for k, auf in enumerate(AUF_MOVES):
                state = setup_for(alg).apply(auf)
                match = self.db.match("OLL", state)
                self.assertIsNotNone(match, msg=f"{label} U*{k}")
                after = state.apply(match.solution)
                self.assertTrue(is_f2l_solved(after), msg=f"{label} U*{k}")
                self.assertTrue(is_last_layer_oriented(after), msg=f"{label} U*{k}")

    def test_pll_cases_match_before_and_after_alignment(self):
        for label, alg in PLL_CASES.items():
            inverse = Algorithm.parse(alg).inverse()
            for k, auf in enumerate(AUF_MOVES):
                for state in (setup_for(alg).apply(auf), CubeState.solved().apply(auf).apply(inverse)):
                    match = self.db.match("PLL", state)
                    self.assertIsNotNone(match, msg=f"{label} U*{k}")
                    self.assertTrue(is_solved_up_to_auf(state.apply(match.solution)), msg=f"{label} U*{k}")

    def test_match_offset_prefixes_auf(self):
        state = setup_for(SUNE).apply("U")
        match = self.db.match("OLL", state)
        self.assertEqual(match.solution, AUF_MOVES[match.rotation_offset] + match.entry.algorithm)

    def test_solved_last_layer_has_no_match(self):
        self.assertIsNone(self.db.match("OLL", CubeState.solved()))
        self.assertIsNone(self.db.match("PLL", CubeState.solved()))

    def test_unknown_stage_table(self):
        with self.assertRaises(ValueError):
            self.db.entries("CROSS")
        with self.assertRaises(ValueError):
            self.db.match("F2L", CubeState.solved())


class TestVerification(unittest.TestCase):
    def setUp(self):
        self.db = AlgorithmDatabase()

    def test_register_derives_pattern(self):
        entry = self.db.register(AlgorithmEntry.create("OLL", "Sune", SUNE))
        self.assertTrue(entry.verified)
        self.assertEqual(entry.pattern, OrientationExtractor().canonical_of(setup_for(SUNE)).canonical)
        self.assertIs(self.db.lookup("OLL", entry.pattern), entry)
        self.assertEqual(len(self.db), 1)

    def test_rejections(self):
        cases = [
            ("OLL", "R"),
            ("OLL", "U"),
            ("PLL", SUNE),
            ("PLL", "U"),
            ("PLL", "x"),
        ]
        for stage, alg in cases:
            with self.assertRaises(AlgorithmVerificationError, msg=f"{stage} {alg}"):
                self.db.register(AlgorithmEntry.create(stage, "bad", alg))
        self.assertEqual(len(self.db), 0)

    def test_supplied_pattern_must_match(self):
        wrong = OrientationExtractor().canonical_of(setup_for(ANTISUNE)).canonical
        with self.assertRaises(AlgorithmVerificationError):
            self.db.register(AlgorithmEntry.create("OLL", "Sune", SUNE, pattern=pattern_to_string(wrong)))

        right = OrientationExtractor().canonical_of(setup_for(SUNE).apply("U2")).canonical
        entry = self.db.register(AlgorithmEntry.create("OLL", "Sune", SUNE, pattern=right))
        self.assertEqual(entry.pattern, right)

    def test_coarse_extractor_collision_is_rejected(self):
        db = AlgorithmDatabase(extractors={Stage.OLL: TopFaceExtractor()})
        db.register(AlgorithmEntry.create("OLL", "Sune", SUNE))
        with self.assertRaises(PatternCollisionError) as ctx:
            db.register(AlgorithmEntry.create("OLL", "Antisune", ANTISUNE))
        self.assertEqual(ctx.exception.stage, "OLL")
        self.assertEqual(db.entries("OLL")[0].name, "Sune")

    def test_equivalent_registration_overwrites(self):
        self.db.register(AlgorithmEntry.create("OLL", "Sune", SUNE))
        with self.assertLogs("cfop.database", level="INFO") as logs:
            entry = self.db.register(AlgorithmEntry.create("OLL", "Sune from U", "U " + SUNE))
        self.assertTrue(any("pattern_overwrite" in line for line in logs.output))
        self.assertEqual(len(self.db.entries("OLL")), 1)
        self.assertEqual(self.db.entries("OLL")[0].name, entry.name)

        for auf in AUF_MOVES:
            state = setup_for(SUNE).apply(auf)
            after = state.apply(self.db.match("OLL", state).solution)
            self.assertTrue(is_last_layer_oriented(after))

    def test_fallback_must_keep_first_two_layers(self):
        with self.assertRaises(AlgorithmVerificationError):
            self.db.register_fallback("OLL", "bad", "R")
        with self.assertRaises(AlgorithmVerificationError):
            self.db.register_fallback("PLL", "empty", "")
        entry = self.db.register_fallback("PLL", "T", PLL_CASES["T"])
        self.assertEqual(self.db.fallbacks("PLL"), [entry])


class TestPersistence(unittest.TestCase):
    def test_jsonl_round_trip(self):
        db = AlgorithmDatabase()
        db.register(AlgorithmEntry.create("OLL", "Sune", SUNE, provenance={"author": "tests"}))
        db.register(AlgorithmEntry.create("PLL", "T", PLL_CASES["T"]))

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "algs" / "extra.jsonl"
            self.assertEqual(db.dump_jsonl(path), 2)
            records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
            self.assertEqual({r["name"] for r in records}, {"Sune", "T"})

            loaded = AlgorithmDatabase()
            self.assertEqual(loaded.load_jsonl(path), 2)

        self.assertEqual(len(loaded), 2)
        sune = loaded.match("OLL", setup_for(SUNE)).entry
        self.assertEqual(sune.provenance, {"author": "tests"})
        self.assertEqual(str(sune.algorithm), SUNE)

    def test_bad_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing.jsonl"
            missing.write_text('{"stage": "OLL"}\n', encoding="utf-8")
            with self.assertRaises(ValueError):
                AlgorithmDatabase().load_jsonl(missing)

            garbled = Path(tmp) / "garbled.jsonl"
            garbled.write_text('{"stage": "OLL", "name": "x", "algorithm": "R Q"}\n', encoding="utf-8")
            with self.assertRaises(ValueError):
                AlgorithmDatabase().load_jsonl(garbled)

            wrong = Path(tmp) / "wrong.jsonl"
            wrong.write_text('\n{"stage": "PLL", "name": "Sune", "algorithm": "R U R\' U R U2 R\'"}\n', encoding="utf-8")
            with self.assertRaises(AlgorithmVerificationError):
                AlgorithmDatabase().load_jsonl(wrong)


if __name__ == "__main__":
    unittest.main()
