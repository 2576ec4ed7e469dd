"""HTTP client for the cube solver server."""

from __future__ import annotations

import json
from urllib import request
from urllib.error import HTTPError


class SolverAPIError(RuntimeError):
    def __init__(self, status: int, payload: dict):
        super().__init__(f"HTTP {status}: {payload.get('error', payload)}")
        self.status = status
        self.payload = payload


class SolverAPIClient:
    def __init__(self, host: str = "127.0.0.1", port: int = 8000, timeout: float = 30.0):
        self.base = f"http://{host}:{port}"
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: dict | None = None) -> dict:
        data = None
        headers = {}
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(url=f"{self.base}{path}", method=method, data=data, headers=headers)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body = exc.read().decode("utf-8")
            try:
                detail = json.loads(body)
            except json.JSONDecodeError:
                detail = {"error": body}
            raise SolverAPIError(exc.code, detail) from None

    def health(self) -> dict:
        return self._call("GET", "/health")

    def get_state(self) -> dict:
        return self._call("GET", "/state")

    def set_state(self, facelets: str) -> dict:
        return self._call("POST", "/state", {"facelets": facelets})

    def reset(self, facelets: str | None = None) -> dict:
        payload = {} if facelets is None else {"facelets": facelets}
        return self._call("POST", "/reset", payload)

    def apply(self, moves: str) -> dict:
        return self._call("POST", "/apply", {"moves": moves})

    def scramble(self, steps: int, seed: int | None = None) -> dict:
        return self._call("POST", "/scramble", {"steps": int(steps), "seed": seed})

    def check(self, facelets: str | None = None) -> dict:
        payload = {} if facelets is None else {"facelets": facelets}
        return self._call("POST", "/check", payload)

    def solve(self, facelets: str | None = None, apply: bool = False, config: dict | None = None) -> dict:
        payload: dict = {"apply": apply}
        if facelets is not None:
            payload["facelets"] = facelets
        if config:
            payload["config"] = config
        return self._call("POST", "/solve", payload)

    def solved(self) -> bool:
        out = self._call("GET", "/solved")
        return bool(out["solved"])
