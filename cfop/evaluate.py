"""Offline solver evaluation over scramble lengths."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from cubesim.engine import random_scramble
from cubesim.state import CubeState

from .config import SolverConfig, load_config
from .pipeline import SolverPipeline
from .types import SOLVING_STAGES

matplotlib.use("Agg")

logger = logging.getLogger(__name__)


@dataclass
class ScrambleMetrics:
    scramble_length: int
    cubes: int
    solved_count: int
    unsolved_count: int
    success_rate: float
    moves_solved_min: float | None
    moves_solved_mean: float | None
    moves_solved_max: float | None
    stage_moves_mean: dict[str, float]
    failures: dict[str, int]
    eval_time_sec: float
    cubes_per_sec: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "scramble_length": self.scramble_length,
            "cubes": self.cubes,
            "solved_count": self.solved_count,
            "unsolved_count": self.unsolved_count,
            "success_rate": self.success_rate,
            "moves_solved_min": self.moves_solved_min,
            "moves_solved_mean": self.moves_solved_mean,
            "moves_solved_max": self.moves_solved_max,
            "stage_moves_mean": dict(self.stage_moves_mean),
            "failures": dict(self.failures),
            "eval_time_sec": self.eval_time_sec,
            "cubes_per_sec": self.cubes_per_sec,
        }

    def csv_row(self) -> dict[str, Any]:
        row = {k: v for k, v in self.to_dict().items() if k not in ("stage_moves_mean", "failures")}
        for stage in SOLVING_STAGES:
            row[f"{stage.value.lower()}_moves_mean"] = self.stage_moves_mean.get(stage.value, 0.0)
        row["failures"] = ";".join(f"{k}={v}" for k, v in sorted(self.failures.items()))
        return row


def _aggregate_metrics(
    scramble_length: int,
    solved: np.ndarray,
    moves: np.ndarray,
    stage_moves: dict[str, list[int]],
    failures: dict[str, int],
    eval_time_sec: float,
) -> ScrambleMetrics:
    solved = np.asarray(solved, dtype=bool)
    moves = np.asarray(moves, dtype=np.int64)
    cubes = int(moves.size)
    solved_count = int(solved.sum())

    if solved_count > 0:
        solved_moves = moves[solved]
        mn, mean, mx = float(np.min(solved_moves)), float(np.mean(solved_moves)), float(np.max(solved_moves))
    else:
        mn = mean = mx = None

    return ScrambleMetrics(
        scramble_length=scramble_length,
        cubes=cubes,
        solved_count=solved_count,
        unsolved_count=cubes - solved_count,
        success_rate=float(solved_count / cubes) if cubes > 0 else 0.0,
        moves_solved_min=mn,
        moves_solved_mean=mean,
        moves_solved_max=mx,
        stage_moves_mean={k: float(np.mean(v)) if v else 0.0 for k, v in stage_moves.items()},
        failures=dict(failures),
        eval_time_sec=float(eval_time_sec),
        cubes_per_sec=float(cubes / max(eval_time_sec, 1e-9)),
    )


def _fmt_opt(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}"


def _print_header() -> None:
    print(
        "scramble | success_rate | solved/total | moves(min/mean/max) | cross/f2l/oll/pll mean | cubes/s",
        flush=True,
    )


def _print_row(m: ScrambleMetrics) -> None:
    moves = f"{_fmt_opt(m.moves_solved_min)}/{_fmt_opt(m.moves_solved_mean)}/{_fmt_opt(m.moves_solved_max)}"
    stages = "/".join(f"{m.stage_moves_mean.get(s.value, 0.0):.1f}" for s in SOLVING_STAGES)
    print(
        f"{m.scramble_length:8d} | "
        f"{m.success_rate:12.4f} | "
        f"{m.solved_count:5d}/{m.cubes:<6d} | "
        f"{moves:19s} | "
        f"{stages:22s} | "
        f"{m.cubes_per_sec:7.2f}",
        flush=True,
    )


def _plot_metrics(metrics: list[ScrambleMetrics], output_dir: Path, prefix: str) -> tuple[Path, Path]:
    lengths = np.array([m.scramble_length for m in metrics], dtype=np.int64)
    sr = np.array([m.success_rate for m in metrics], dtype=np.float64)

    fig1 = plt.figure(figsize=(10, 5))
    ax1 = fig1.add_subplot(111)
    ax1.plot(lengths, sr, marker="o", linewidth=2.0)
    ax1.set_title("Solver Evaluation: Success Rate vs Scramble Length")
    ax1.set_xlabel("Scramble length")
    ax1.set_ylabel("Success rate")
    ax1.set_ylim(0.0, 1.05)
    ax1.grid(True, alpha=0.3)
    sr_path = output_dir / f"{prefix}_success_rate.png"
    fig1.tight_layout()
    fig1.savefig(sr_path, dpi=160)
    plt.close(fig1)

    fig2 = plt.figure(figsize=(11, 6))
    ax2 = fig2.add_subplot(111)
    bottom = np.zeros(len(metrics), dtype=np.float64)
    for stage in SOLVING_STAGES:
        values = np.array([m.stage_moves_mean.get(stage.value, 0.0) for m in metrics], dtype=np.float64)
        ax2.bar(lengths, values, bottom=bottom, label=stage.value)
        bottom += values
    ax2.plot(
        lengths,
        [np.nan if m.moves_solved_mean is None else m.moves_solved_mean for m in metrics],
        color="black",
        marker="o",
        linewidth=1.5,
        label="Solved mean",
    )
    ax2.set_title("Solver Evaluation: Moves per Stage")
    ax2.set_xlabel("Scramble length")
    ax2.set_ylabel("Moves")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="best")
    moves_path = output_dir / f"{prefix}_moves.png"
    fig2.tight_layout()
    fig2.savefig(moves_path, dpi=160)
    plt.close(fig2)

    return sr_path, moves_path


def _save_reports(
    metrics: list[ScrambleMetrics],
    output_dir: Path,
    prefix: str,
    args: argparse.Namespace,
    config: SolverConfig,
) -> tuple[Path, Path]:
    csv_path = output_dir / f"{prefix}_metrics.csv"
    json_path = output_dir / f"{prefix}_metrics.json"

    rows = [m.csv_row() for m in metrics]
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)

    payload = {
        "config": {
            "cubes_per_scramble": int(args.cubes_per_scramble),
            "scramble_min": int(args.scramble_min),
            "scramble_max": int(args.scramble_max),
            "seed": args.seed,
            "solver": config.to_dict(),
        },
        "metrics": [m.to_dict() for m in metrics],
    }
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return csv_path, json_path


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Offline CFOP solver evaluation over random scrambles")
    p.add_argument("--config", default=None, help="YAML file with a solver: section")
    p.add_argument("--cubes-per-scramble", type=int, default=20)
    p.add_argument("--scramble-min", type=int, default=1)
    p.add_argument("--scramble-max", type=int, default=20)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--max-total-moves", type=int, default=None)
    p.add_argument("--max-moves-per-stage", type=int, default=None)
    p.add_argument("--output-dir", default="eval_reports")
    p.add_argument("--output-prefix", default="solver_eval")
    p.add_argument("--progress", default="on", choices=["on", "off"])
    return p


def run_evaluation(args: argparse.Namespace) -> dict[str, Any]:
    if args.scramble_min < 0 or args.scramble_max < args.scramble_min:
        raise ValueError("Require 0 <= scramble_min <= scramble_max")
    if args.cubes_per_scramble < 1:
        raise ValueError("--cubes-per-scramble must be >= 1")

    config = load_config(args.config) if args.config else SolverConfig()
    config = config.override(
        max_total_moves=args.max_total_moves,
        max_moves_per_stage=args.max_moves_per_stage,
    )
    pipeline = SolverPipeline(config=config)
    rng = np.random.default_rng(args.seed)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(
        "evaluation_init "
        f"cubes_per_scramble={args.cubes_per_scramble} "
        f"scramble_range={args.scramble_min}..{args.scramble_max} "
        f"max_total_moves={config.max_total_moves} algorithms={len(pipeline.database)}",
        flush=True,
    )
    _print_header()

    metrics: list[ScrambleMetrics] = []
    for length in range(int(args.scramble_min), int(args.scramble_max) + 1):
        t0 = time.perf_counter()
        n = int(args.cubes_per_scramble)
        solved_out = np.zeros((n,), dtype=bool)
        moves_out = np.zeros((n,), dtype=np.int64)
        stage_moves: dict[str, list[int]] = {s.value: [] for s in SOLVING_STAGES}
        failures: dict[str, int] = {}

        cube_iter = range(n)
        if args.progress == "on":
            cube_iter = tqdm(cube_iter, desc=f"scramble={length}", unit="cube", mininterval=1.0, leave=False)

        for i in cube_iter:
            scramble = random_scramble(length, rng)
            result = pipeline.solve(CubeState.solved().apply(scramble))
            solved_out[i] = result.success
            moves_out[i] = result.total_moves
            for stage, count in result.stage_moves().items():
                stage_moves.setdefault(stage, []).append(count)
            if not result.success:
                key = f"{result.stage_reports[-1].stage.value}:{result.error}" if result.stage_reports else str(result.error)
                failures[key] = failures.get(key, 0) + 1
                logger.info("evaluation_failure scramble=%r error=%s", str(scramble), result.error)

        m = _aggregate_metrics(length, solved_out, moves_out, stage_moves, failures, time.perf_counter() - t0)
        metrics.append(m)
        _print_row(m)

    sr_path, moves_path = _plot_metrics(metrics, output_dir, args.output_prefix)
    csv_path, json_path = _save_reports(metrics, output_dir, args.output_prefix, args, config)

    avg_sr = float(np.mean([m.success_rate for m in metrics]))
    print(
        "evaluation_summary "
        f"avg_success_rate={avg_sr:.4f} sr_plot={sr_path} moves_plot={moves_path} csv={csv_path} json={json_path}",
        flush=True,
    )

    return {
        "metrics": metrics,
        "sr_plot": sr_path,
        "moves_plot": moves_path,
        "csv": csv_path,
        "json": json_path,
    }


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="[%(asctime)s] %(message)s", datefmt="%H:%M:%S")
    args = build_parser().parse_args()
    run_evaluation(args)


if __name__ == "__main__":
    main()
