import json
import threading
import time
import unittest
from urllib import error, request

from cfop.api import (
    analyze_stage,
    apply_move_sequence,
    check_solvability,
    create_solved_cube,
    register_algorithm,
    solve_cube,
)
from cfop.client import SolverAPIClient, SolverAPIError
from cfop.database import AlgorithmDatabase, AlgorithmEntry
from cfop.errors import PatternCollisionError
from cfop.patterns import TopFaceExtractor
from cfop.server import CubeHTTPServer
from cfop.types import Stage
from cubesim.engine import CubeEngine
from cubesim.errors import MalformedMoveNotation
from cubesim.state import CubeState


def http_json(method: str, url: str, payload: dict | None = None):
    data = None
    headers = {}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url=url, method=method, data=data, headers=headers)
    with request.urlopen(req, timeout=30.0) as resp:
        body = resp.read().decode("utf-8")
        return resp.status, json.loads(body)


class TestFacade(unittest.TestCase):
    def test_sune_end_to_end(self):
        state = apply_move_sequence(create_solved_cube(), "R U R' U R U2 R'")
        result = solve_cube(state)
        self.assertTrue(result.success, msg=result.error_message)
        self.assertTrue(result.final_state.is_fully_solved())

    def test_u_turn_end_to_end(self):
        state = apply_move_sequence(create_solved_cube(), "U")
        self.assertTrue(analyze_stage("CROSS", state).complete)
        self.assertTrue(analyze_stage(Stage.F2L, state).complete)
        result = solve_cube(state, config={"max_total_moves": 50})
        by_stage = {r.stage: r for r in result.stage_reports}
        self.assertEqual(by_stage[Stage.CROSS].moves, 0)
        self.assertEqual(by_stage[Stage.F2L].moves, 0)
        self.assertTrue(result.success)

    def test_malformed_notation(self):
        with self.assertRaises(MalformedMoveNotation):
            apply_move_sequence(create_solved_cube(), "R U X")

    def test_check_solvability(self):
        self.assertTrue(check_solvability(create_solved_cube()).is_solvable)

    def test_register_algorithm_into_given_database(self):
        db = AlgorithmDatabase(extractors={Stage.OLL: TopFaceExtractor()})
        entry = register_algorithm(AlgorithmEntry.create("OLL", "Sune", "R U R' U R U2 R'"), database=db)
        self.assertTrue(entry.verified)
        with self.assertRaises(PatternCollisionError):
            register_algorithm(AlgorithmEntry.create("OLL", "Antisune", "R U2 R' U' R U' R'"), database=db)

    def test_solve_with_bad_config(self):
        with self.assertRaises(ValueError):
            solve_cube(create_solved_cube(), config={"max_total_moves": 0})


class TestHTTPAPI(unittest.TestCase):
    def setUp(self):
        self.engine = CubeEngine(seed=3)
        self.server = CubeHTTPServer(engine=self.engine, host="127.0.0.1", port=0)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        time.sleep(0.05)
        self.base = f"http://{self.server.host}:{self.server.port}"
        self.client = SolverAPIClient(host=self.server.host, port=self.server.port)

    def tearDown(self):
        self.server.shutdown()
        self.thread.join(timeout=1.0)

    def test_health(self):
        status, out = http_json("GET", f"{self.base}/health")
        self.assertEqual(status, 200)
        self.assertTrue(out["ready"])
        self.assertGreater(out["algorithms"], 0)
        self.assertEqual(out["config"]["max_total_moves"], 250)

    def test_apply_and_state(self):
        status, out = http_json("POST", f"{self.base}/apply", {"moves": "R U"})
        self.assertEqual(status, 200)
        self.assertEqual(out["history"], ["R", "U"])
        self.assertFalse(out["solved"])

        status, out = http_json("GET", f"{self.base}/state")
        self.assertEqual(out["facelets"], CubeState.solved().apply("R U").to_string())

    def test_state_round_trip(self):
        target = CubeState.solved().apply("F2 D").to_string()
        out = self.client.set_state(target)
        self.assertEqual(out["facelets"], target)
        self.assertEqual(self.client.get_state()["facelets"], target)
        self.client.reset()
        self.assertTrue(self.client.solved())

    def test_scramble_reports_moves(self):
        out = self.client.scramble(12, seed=7)
        self.assertEqual(out["step_count"], 12)
        self.assertEqual(len(out["scramble"].split()), 12)
        self.assertFalse(out["solved"])

    def test_solve_session_and_apply(self):
        self.client.apply("R U R' U R U2 R'")
        out = self.client.solve(apply=True)
        self.assertTrue(out["success"], msg=out["error_message"])
        self.assertTrue(out["applied_to_session"])
        self.assertTrue(self.client.solved())

    def test_solve_explicit_state_leaves_session(self):
        facelets = CubeState.solved().apply("U").to_string()
        out = self.client.solve(facelets=facelets, apply=True)
        self.assertTrue(out["success"])
        self.assertFalse(out["applied_to_session"])
        self.assertEqual(out["solution"], "U'")
        self.assertTrue(self.client.solved())

    def test_solve_with_config_override(self):
        self.client.apply("R U R' U R U2 R'")
        out = self.client.solve(config={"max_total_moves": 1})
        self.assertFalse(out["success"])
        self.assertEqual(out["error"], "move_limit_exceeded")

    def test_check_reports_unsolvable(self):
        colors = list(CubeState.solved().to_string())
        colors[5], colors[10] = colors[10], colors[5]
        out = self.client.check("".join(colors))
        self.assertFalse(out["is_solvable"])
        self.assertEqual(out["errors"][0]["code"], "edge_orientation")

    def test_bad_requests_return_400(self):
        for path, payload in (
            ("/apply", {"moves": "R Q"}),
            ("/apply", {}),
            ("/state", {"facelets": "W" * 54}),
            ("/scramble", {"steps": -1}),
            ("/solve", {"config": {"max_attempts": 0}}),
        ):
            req = request.Request(
                url=f"{self.base}{path}",
                method="POST",
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
            with self.assertRaises(error.HTTPError, msg=path) as ctx:
                request.urlopen(req, timeout=5.0)
            self.assertEqual(ctx.exception.code, 400, msg=path)

    def test_client_raises_api_error(self):
        with self.assertRaises(SolverAPIError) as ctx:
            self.client.apply("R Q")
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.payload["type"], "MalformedMoveNotation")

    def test_unknown_path_returns_404(self):
        with self.assertRaises(error.HTTPError) as ctx:
            request.urlopen(f"{self.base}/missing", timeout=5.0)
        self.assertEqual(ctx.exception.code, 404)


if __name__ == "__main__":
    unittest.main()
