import argparse
import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from cfop.evaluate import _aggregate_metrics, build_parser, run_evaluation


class TestEvaluate(unittest.TestCase):
    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.cubes_per_scramble, 20)
        self.assertEqual(args.scramble_min, 1)
        self.assertEqual(args.scramble_max, 20)
        self.assertEqual(args.progress, "on")

    def test_metrics_aggregation(self):
        solved = np.array([True, False, True, True], dtype=bool)
        moves = np.array([30, 12, 40, 50], dtype=np.int64)
        m = _aggregate_metrics(
            scramble_length=5,
            solved=solved,
            moves=moves,
            stage_moves={"CROSS": [4, 6], "F2L": []},
            failures={"OLL:no_algorithm_found": 1},
            eval_time_sec=2.0,
        )
        self.assertEqual(m.cubes, 4)
        self.assertEqual(m.solved_count, 3)
        self.assertEqual(m.unsolved_count, 1)
        self.assertAlmostEqual(m.success_rate, 0.75, places=6)
        self.assertAlmostEqual(m.moves_solved_min, 30.0, places=6)
        self.assertAlmostEqual(m.moves_solved_mean, 40.0, places=6)
        self.assertAlmostEqual(m.moves_solved_max, 50.0, places=6)
        self.assertEqual(m.stage_moves_mean, {"CROSS": 5.0, "F2L": 0.0})
        self.assertAlmostEqual(m.cubes_per_sec, 2.0, places=6)
        self.assertEqual(m.csv_row()["failures"], "OLL:no_algorithm_found=1")

    def test_no_solved_cubes(self):
        m = _aggregate_metrics(1, np.array([False]), np.array([3]), {}, {}, 1.0)
        self.assertIsNone(m.moves_solved_mean)
        self.assertEqual(m.success_rate, 0.0)

    def test_smoke_evaluation_writes_artifacts(self):
        with tempfile.TemporaryDirectory() as td:
            args = argparse.Namespace(
                config=None,
                cubes_per_scramble=2,
                scramble_min=1,
                scramble_max=2,
                seed=123,
                max_total_moves=None,
                max_moves_per_stage=None,
                output_dir=str(Path(td) / "out"),
                output_prefix="smoke",
                progress="off",
            )
            out = run_evaluation(args)
            self.assertTrue(Path(out["sr_plot"]).exists())
            self.assertTrue(Path(out["moves_plot"]).exists())
            self.assertTrue(Path(out["csv"]).exists())
            self.assertEqual(len(out["metrics"]), 2)
            payload = json.loads(Path(out["json"]).read_text(encoding="utf-8"))
            self.assertEqual(payload["config"]["cubes_per_scramble"], 2)
            self.assertEqual(len(payload["metrics"]), 2)

    def test_invalid_range_raises(self):
        with tempfile.TemporaryDirectory() as td:
            args = build_parser().parse_args(["--scramble-min", "5", "--scramble-max", "2", "--output-dir", td])
            with self.assertRaises(ValueError):
                run_evaluation(args)


if __name__ == "__main__":
    unittest.main()
