import threading
import unittest

import numpy as np

from cubesim.engine import CubeEngine, random_scramble
from cubesim.errors import MalformedMoveNotation
from cubesim.geometry import OPPOSITE_FACE
from cubesim.state import CubeState


class TestRandomScramble(unittest.TestCase):
    def test_no_redundant_neighbours(self):
        rng = np.random.default_rng(0)
        alg = random_scramble(500, rng)
        self.assertEqual(len(alg), 500)
        faces = [m.face for m in alg]
        for i in range(1, len(faces)):
            self.assertNotEqual(faces[i], faces[i - 1])
        for i in range(2, len(faces)):
            if faces[i - 1] == OPPOSITE_FACE[faces[i - 2]]:
                self.assertNotEqual(faces[i], faces[i - 2])

    def test_seeded_scrambles_repeat(self):
        a = random_scramble(20, np.random.default_rng(9))
        b = random_scramble(20, np.random.default_rng(9))
        self.assertEqual(a, b)

    def test_invalid_steps(self):
        with self.assertRaises(ValueError):
            random_scramble(-1, np.random.default_rng(0))
        self.assertEqual(len(random_scramble(0, np.random.default_rng(0))), 0)


class TestCubeEngine(unittest.TestCase):
    def test_apply_tracks_history(self):
        engine = CubeEngine()
        engine.apply("R U R'")
        engine.apply("U'")
        payload = engine.state_payload()
        self.assertEqual(payload["step_count"], 4)
        self.assertEqual(payload["history"], ["R", "U", "R'", "U'"])
        self.assertFalse(engine.is_solved())

    def test_malformed_moves_leave_session_unchanged(self):
        engine = CubeEngine()
        engine.apply("F")
        before = engine.get_state()
        with self.assertRaises(MalformedMoveNotation):
            engine.apply("R Q")
        self.assertEqual(engine.get_state(), before)
        self.assertEqual(engine.step_count, 1)

    def test_scramble_and_reset(self):
        engine = CubeEngine(seed=5)
        state, alg = engine.scramble(12, seed=7)
        self.assertEqual(state, CubeState.solved().apply(alg))
        self.assertEqual(engine.step_count, 12)
        engine.reset()
        self.assertTrue(engine.is_solved())
        self.assertEqual(engine.history, [])

        other = CubeEngine()
        _, again = other.scramble(12, seed=7)
        self.assertEqual(again, alg)

    def test_set_state(self):
        engine = CubeEngine()
        target = CubeState.solved().apply("L D2")
        engine.set_state(target)
        self.assertEqual(engine.get_state(), target)
        self.assertEqual(engine.step_count, 0)

    def test_concurrent_moves_are_not_lost(self):
        engine = CubeEngine()

        def worker():
            for _ in range(100):
                engine.apply("R")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(engine.step_count, 400)
        self.assertTrue(engine.is_solved())


if __name__ == "__main__":
    unittest.main()
