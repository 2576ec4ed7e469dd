"""CLI entrypoint for the CFOP solver."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from cubesim.engine import CubeEngine
from cubesim.errors import CubeError
from cubesim.solvability import check_solvability
from cubesim.state import CubeState

from .config import SolverConfig, load_config
from .database import AlgorithmDatabase
from .pipeline import SolverPipeline
from .server import CubeHTTPServer


def _load_state(facelets: str | None, scramble: str | None) -> CubeState:
    state = CubeState.from_string(facelets) if facelets else CubeState.solved()
    if scramble:
        state = state.apply(scramble)
    return state


def _load_solver_config(args: argparse.Namespace) -> SolverConfig:
    config = load_config(args.config) if args.config else SolverConfig()
    return config.override(
        max_moves_per_stage=args.max_moves_per_stage,
        max_total_moves=args.max_total_moves,
        max_attempts=args.max_attempts,
        fallback_depth=args.fallback_depth,
    )


def _load_database(args: argparse.Namespace) -> AlgorithmDatabase | None:
    if not args.algorithms:
        return None
    db = AlgorithmDatabase.with_builtins()
    count = db.load_jsonl(args.algorithms)
    print(f"algorithms_loaded path={args.algorithms} count={count} total={len(db)}", flush=True)
    return db


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CFOP 3x3 cube solver")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="mode", required=True)

    state_args = argparse.ArgumentParser(add_help=False)
    state_args.add_argument("--facelets", type=str, default=None, help="54-sticker string in U,R,F,D,L,B order")
    state_args.add_argument("--scramble", type=str, default=None, help="Moves applied before solving")

    solver_args = argparse.ArgumentParser(add_help=False)
    solver_args.add_argument("--config", type=str, default=None, help="YAML file with a solver: section")
    solver_args.add_argument("--algorithms", type=str, default=None, help="Extra algorithms as JSON Lines")
    solver_args.add_argument("--max-moves-per-stage", type=int, default=None)
    solver_args.add_argument("--max-total-moves", type=int, default=None)
    solver_args.add_argument("--max-attempts", type=int, default=None)
    solver_args.add_argument("--fallback-depth", type=int, default=None)

    solve = sub.add_parser("solve", parents=[state_args, solver_args], help="Solve one cube")
    solve.add_argument("--json", action="store_true", help="Print the full result as JSON")

    sub.add_parser("check", parents=[state_args], help="Check whether a state is solvable")

    serve = sub.add_parser("serve", parents=[solver_args], help="Run the HTTP solver API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--scramble-steps", type=int, default=0)
    serve.add_argument("--seed", type=int, default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(asctime)s] %(message)s", datefmt="%H:%M:%S")

    try:
        if args.mode == "check":
            report = check_solvability(_load_state(args.facelets, args.scramble))
            print(json.dumps(report.to_dict(), indent=2), flush=True)
            return 0 if report.is_solvable else 1

        config = _load_solver_config(args)
        database = _load_database(args)

        if args.mode == "solve":
            state = _load_state(args.facelets, args.scramble)
            result = SolverPipeline(database=database, config=config).solve(state)
            if args.json:
                print(json.dumps(result.to_dict(), indent=2), flush=True)
            else:
                for report in result.stage_reports:
                    print(
                        f"stage={report.stage.value} success={report.success} skipped={report.skipped} "
                        f"moves={report.moves} attempts={report.attempts} error={report.error}",
                        flush=True,
                    )
                print(
                    f"solve_result success={result.success} total_moves={result.total_moves} "
                    f"final_stage={result.final_stage.value}",
                    flush=True,
                )
                print(f"solution={result.solution()}", flush=True)
            return 0 if result.success else 1

        if args.mode == "serve":
            engine = CubeEngine(seed=args.seed)
            if args.scramble_steps > 0:
                engine.scramble(args.scramble_steps)
            server = CubeHTTPServer(engine=engine, host=args.host, port=args.port, database=database, config=config)
            print(f"CFOP solver server listening on http://{server.host}:{server.port}", flush=True)
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                pass
            finally:
                server.shutdown()
            return 0
    except (CubeError, ValueError) as exc:
        print(f"error={type(exc).__name__} message={exc}", file=sys.stderr, flush=True)
        return 2

    parser.error(f"Unsupported mode: {args.mode}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
