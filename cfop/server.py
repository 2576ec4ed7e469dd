"""HTTP API server for the cube solver."""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from cubesim.engine import CubeEngine
from cubesim.errors import CubeError
from cubesim.solvability import check_solvability
from cubesim.state import CubeState

from .config import SolverConfig
from .database import AlgorithmDatabase
from .errors import SolverError
from .pipeline import SolverPipeline

logger = logging.getLogger(__name__)


class RequestError(ValueError):
    """Raised for malformed request bodies."""


def state_from_body(body: dict[str, Any]) -> CubeState | None:
    """Read an optional ``facelets`` string or ``faces`` mapping from a request body."""
    if "facelets" in body and "faces" in body:
        raise RequestError("Use only one of facelets or faces")
    if "facelets" in body:
        if not isinstance(body["facelets"], str):
            raise RequestError("facelets must be a string")
        return CubeState.from_string(body["facelets"])
    if "faces" in body:
        if not isinstance(body["faces"], dict):
            raise RequestError("faces must be an object")
        return CubeState.from_faces(body["faces"])
    return None


class CubeHTTPServer:
    def __init__(
        self,
        engine: CubeEngine,
        host: str = "127.0.0.1",
        port: int = 8000,
        database: AlgorithmDatabase | None = None,
        config: SolverConfig | None = None,
    ):
        self.engine = engine
        self.config = config or SolverConfig()
        self.pipeline = SolverPipeline(database=database, config=self.config)
        self._lock = threading.RLock()

        handler_cls = self._build_handler()
        self.httpd = ThreadingHTTPServer((host, port), handler_cls)
        self.host, self.port = self.httpd.server_address

    def _solve(self, body: dict[str, Any]) -> dict[str, Any]:
        state = state_from_body(body)
        apply = body.get("apply", False)
        if not isinstance(apply, bool):
            raise RequestError("apply must be a boolean")
        overrides = body.get("config") or {}
        if not isinstance(overrides, dict):
            raise RequestError("config must be an object")

        pipeline = self.pipeline
        if overrides:
            config = SolverConfig.from_mapping({**self.config.to_dict(), **overrides})
            pipeline = SolverPipeline(database=self.pipeline.database, config=config)

        source = self.engine.get_state() if state is None else state
        result = pipeline.solve(source)
        applied = apply and state is None and result.success
        if applied and result.applied_algorithms:
            self.engine.apply(result.solution())
        payload = result.to_dict()
        payload["applied_to_session"] = applied
        return payload

    def _build_handler(self):
        parent = self

        class Handler(BaseHTTPRequestHandler):
            server_version = "CubeSolver/1.0"

            def log_message(self, fmt: str, *args):
                return

            def _send_json(self, code: int, payload: dict[str, Any]):
                body = json.dumps(payload).encode("utf-8")
                self.send_response(code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _read_json(self) -> dict[str, Any]:
                length = int(self.headers.get("Content-Length", "0"))
                if length == 0:
                    return {}
                data = self.rfile.read(length)
                try:
                    obj = json.loads(data.decode("utf-8"))
                except json.JSONDecodeError as exc:
                    raise RequestError(f"Invalid JSON body: {exc}") from exc
                if not isinstance(obj, dict):
                    raise RequestError("JSON body must be an object")
                return obj

            def do_GET(self):
                with parent._lock:
                    if self.path == "/health":
                        self._send_json(
                            200,
                            {
                                "ready": True,
                                "algorithms": len(parent.pipeline.database),
                                "config": parent.config.to_dict(),
                            },
                        )
                        return

                    if self.path == "/state":
                        self._send_json(200, parent.engine.state_payload())
                        return

                    if self.path == "/solved":
                        self._send_json(200, {"solved": parent.engine.is_solved()})
                        return

                self._send_json(404, {"error": "Not Found"})

            def do_POST(self):
                try:
                    body = self._read_json()
                    with parent._lock:
                        if self.path == "/state":
                            state = state_from_body(body)
                            if state is None:
                                raise RequestError("Missing required field: facelets or faces")
                            parent.engine.set_state(state)
                            self._send_json(200, parent.engine.state_payload())
                            return

                        if self.path == "/reset":
                            parent.engine.reset(state=state_from_body(body))
                            self._send_json(200, parent.engine.state_payload())
                            return

                        if self.path == "/apply":
                            moves = body.get("moves")
                            if not isinstance(moves, str):
                                raise RequestError("Missing required field: moves (string)")
                            parent.engine.apply(moves)
                            self._send_json(200, parent.engine.state_payload())
                            return

                        if self.path == "/scramble":
                            if "steps" not in body:
                                raise RequestError("Missing required field: steps")
                            steps = body["steps"]
                            seed = body.get("seed")
                            if seed is not None and not isinstance(seed, int):
                                raise RequestError("seed must be an integer or null")
                            _, alg = parent.engine.scramble(steps=steps, seed=seed)
                            payload = parent.engine.state_payload()
                            payload["scramble"] = str(alg)
                            self._send_json(200, payload)
                            return

                        if self.path == "/check":
                            state = state_from_body(body)
                            report = check_solvability(parent.engine.get_state() if state is None else state)
                            self._send_json(200, report.to_dict())
                            return

                        if self.path == "/solve":
                            self._send_json(200, parent._solve(body))
                            return

                except (RequestError, CubeError, SolverError, ValueError) as exc:
                    logger.debug("request_rejected path=%s error=%s", self.path, exc)
                    self._send_json(400, {"error": str(exc), "type": type(exc).__name__})
                    return

                self._send_json(404, {"error": "Not Found"})

        return Handler

    def serve_forever(self):
        self.httpd.serve_forever()

    def start_background(self, daemon: bool = True) -> threading.Thread:
        thread = threading.Thread(target=self.serve_forever, daemon=daemon)
        thread.start()
        return thread

    def shutdown(self):
        self.httpd.shutdown()
        self.httpd.server_close()
