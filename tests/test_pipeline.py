import json
import unittest

import numpy as np

from cfop.config import SolverConfig
from cfop.database import AlgorithmDatabase, default_database
from cfop.pipeline import SolverPipeline
from cfop.types import Stage
from cubesim.engine import random_scramble
from cubesim.moves import Algorithm
from cubesim.state import CubeState

SUNE = "R U R' U R U2 R'"


class TestSolverPipeline(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.pipeline = SolverPipeline(database=default_database())

    def test_sune_scramble_is_solved(self):
        result = self.pipeline.solve(CubeState.solved().apply(SUNE))
        self.assertTrue(result.success, msg=result.error_message)
        self.assertTrue(result.final_state.is_fully_solved())
        self.assertEqual(result.final_stage, Stage.DONE)
        self.assertIsNone(result.error)
        self.assertEqual(result.stage_moves()["CROSS"], 0)
        self.assertEqual(result.stage_moves()["F2L"], 0)

    def test_single_u_turn_skips_early_stages(self):
        result = self.pipeline.solve(CubeState.solved().apply("U"))
        self.assertTrue(result.success)
        skipped = {r.stage: r.skipped for r in result.stage_reports}
        self.assertEqual(
            skipped,
            {Stage.CROSS: True, Stage.F2L: True, Stage.OLL: True, Stage.PLL: False},
        )
        self.assertEqual(result.total_moves, 1)
        self.assertEqual(result.solution(), "U'")

    def test_solved_input(self):
        result = self.pipeline.solve(CubeState.solved())
        self.assertTrue(result.success)
        self.assertEqual(result.total_moves, 0)
        self.assertEqual(result.solution(), "")
        self.assertTrue(all(r.skipped for r in result.stage_reports))

    def test_random_scrambles_are_solved(self):
        rng = np.random.default_rng(2024)
        for i in range(5):
            scramble = random_scramble(25, rng)
            state = CubeState.solved().apply(scramble)
            result = self.pipeline.solve(state)
            self.assertTrue(result.success, msg=f"scramble {i}: {scramble} -> {result.error_message}")
            self.assertLessEqual(result.total_moves, SolverConfig().max_total_moves)
            self.assertEqual(state.apply(result.solution()), result.final_state)

    def test_slice_scramble_is_solved(self):
        state = CubeState.solved().apply("M E S R U' F2")
        result = self.pipeline.solve(state)
        self.assertTrue(result.success, msg=result.error_message)
        self.assertTrue(result.final_state.is_fully_solved())

    def test_stage_moves_sum_to_total(self):
        state = CubeState.solved().apply("R U F' L2 D B'")
        result = self.pipeline.solve(state)
        self.assertEqual(sum(result.stage_moves().values()), result.total_moves)
        self.assertEqual(
            sum(a.move_count for a in result.applied_algorithms),
            result.total_moves,
        )


class TestPipelineFailures(unittest.TestCase):
    def test_empty_database_fails_cleanly(self):
        config = SolverConfig(fallback_depth=0)
        pipeline = SolverPipeline(database=AlgorithmDatabase(), config=config)
        state = CubeState.solved().apply(Algorithm.parse(SUNE).inverse())
        result = pipeline.solve(state)
        self.assertFalse(result.success)
        self.assertEqual(result.final_stage, Stage.FAILED)
        self.assertEqual(result.error, "no_algorithm_found")
        self.assertLessEqual(result.total_moves, config.max_total_moves)
        self.assertEqual(result.stage_reports[-1].stage, Stage.OLL)

    def test_unsolvable_input_is_rejected(self):
        colors = CubeState.solved().colors.copy()
        colors[5], colors[10] = colors[10], colors[5]
        result = SolverPipeline(database=default_database()).solve(CubeState(colors))
        self.assertFalse(result.success)
        self.assertEqual(result.error, "unsolvable_state")
        self.assertEqual(result.total_moves, 0)
        self.assertEqual(result.stage_reports, [])

    def test_unsolvable_input_without_validation_still_fails(self):
        solved = CubeState.solved()
        colors = solved.colors.copy()
        colors[8], colors[9], colors[20] = solved.colors[20], solved.colors[8], solved.colors[9]
        config = SolverConfig(validate_solvability=False)
        result = SolverPipeline(database=default_database(), config=config).solve(CubeState(colors))
        self.assertFalse(result.success)
        self.assertEqual(result.final_stage, Stage.FAILED)
        self.assertLessEqual(result.total_moves, config.max_total_moves)

    def test_total_move_ceiling(self):
        config = SolverConfig(max_total_moves=3)
        rng = np.random.default_rng(77)
        state = CubeState.solved().apply(random_scramble(30, rng))
        result = SolverPipeline(database=default_database(), config=config).solve(state)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "move_limit_exceeded")
        self.assertLessEqual(result.total_moves, 3)

    def test_result_serializes_to_json(self):
        result = SolverPipeline(database=default_database()).solve(CubeState.solved().apply("R U R' U'"))
        payload = json.loads(json.dumps(result.to_dict()))
        self.assertEqual(payload["final_stage"], result.final_stage.value)
        self.assertEqual(len(payload["stage_reports"]), len(result.stage_reports))
        self.assertEqual(len(payload["final_state"]), 54)


if __name__ == "__main__":
    unittest.main()
