"""CLI for generating outcome tables and simulating sessions from config files."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from .config import ValidatedBanditConfig, load_bandit_config, validate_seed
from .generation import GeneratedOutcomes, draw_arm_order, generate_outcomes
from .io import (
    read_outcome_table_csv,
    write_arm_order_json,
    write_json_summary,
    write_outcome_table_csv,
    write_session_record_csv,
)
from .simulation import Chooser, EpsilonGreedyChooser, UniformRandomChooser, simulate_session

_CHOOSERS = ("random", "greedy")


def run_bandit_cli(argv: Sequence[str] | None = None) -> int:
    """Generate outcomes or simulate a session from a JSON or YAML config.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        CLI argument list. When ``None``, process arguments are used.

    Returns
    -------
    int
        Exit code (`0` on success).
    """

    parser = argparse.ArgumentParser(description="Generate n-armed bandit outcomes from JSON or YAML config.")
    parser.add_argument("--config", required=True, help="Path to bandit task JSON or YAML config.")
    parser.add_argument("--section", default=None, help="Top-level key of the task config in an experiment file.")
    parser.add_argument(
        "--mode",
        choices=("generate", "simulate"),
        default="generate",
        help="'generate' writes the outcome table; 'simulate' also plays a simulated session.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Outcome seed. Overrides the config seed.")
    parser.add_argument(
        "--precision",
        type=int,
        default=None,
        help="Decimal digits outcomes are rounded to. Overrides the config precision; not allowed with --outcomes.",
    )
    parser.add_argument(
        "--outcomes",
        default=None,
        help="Precomputed outcome CSV to use instead of sampling (simulate mode).",
    )
    parser.add_argument("--chooser", choices=_CHOOSERS, default="random", help="Simulated participant.")
    parser.add_argument("--session-seed", type=int, default=None, help="Seed for simulated choices.")
    parser.add_argument("--output-dir", default=".", help="Directory for CSV/JSON outputs.")
    parser.add_argument("--prefix", default="bandit", help="Output filename prefix.")
    parser.add_argument("--verbose", action="store_true", help="Log generation and session progress.")
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    config = load_bandit_config(args.config, section=args.section)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    prefix = str(args.prefix)

    if args.outcomes is not None:
        if args.mode != "simulate":
            parser.error("--outcomes is only supported with --mode simulate")
        if args.precision is not None:
            parser.error("--precision cannot be combined with --outcomes; a loaded table keeps its own precision")
        generated = _load_generated(config, Path(args.outcomes), seed=args.seed)
    else:
        generated = generate_outcomes(config, precision=args.precision, seed=args.seed)

    outcome_path = write_outcome_table_csv(generated.outcomes, output_dir / f"{prefix}_outcomes.csv")
    order_path = write_arm_order_json(generated.arm_order, output_dir / f"{prefix}_arm_order.json")

    if args.mode == "generate":
        summary_path = write_json_summary(
            {
                "mode": "generate",
                "seed": generated.seed,
                "precision": generated.outcomes.precision,
                "n_games": config.n_games,
                "n_arms": config.n_arms,
                "trials_per_game": list(config.trials_per_game),
            },
            output_dir / f"{prefix}_summary.json",
        )
        print(f"Outcome generation complete: games={config.n_games}, arms={config.n_arms}, seed={generated.seed}")
        print(f"Outcomes CSV: {outcome_path}")
        print(f"Arm order JSON: {order_path}")
        print(f"Summary JSON: {summary_path}")
        return 0

    record = simulate_session(config, generated, _build_chooser(args.chooser), seed=args.session_seed)
    session_path = write_session_record_csv(record, output_dir / f"{prefix}_session.csv")
    summary_path = write_json_summary(
        {"mode": "simulate", "seed": generated.seed, **record.summary()},
        output_dir / f"{prefix}_summary.json",
    )
    print(f"Session simulation complete: n_trials={record.n_trials}, total_points={record.total_points}")
    print(f"Outcomes CSV: {outcome_path}")
    print(f"Arm order JSON: {order_path}")
    print(f"Session CSV: {session_path}")
    print(f"Summary JSON: {summary_path}")
    return 0


def _load_generated(config: ValidatedBanditConfig, path: Path, *, seed: int | None) -> GeneratedOutcomes:
    """Load fixed outcomes and draw a fresh per-session arm order."""

    outcomes = read_outcome_table_csv(path, config=config)
    rng = np.random.default_rng(None if seed is None else validate_seed(seed))
    arm_order = draw_arm_order(config.n_games, config.n_arms, rng)
    return GeneratedOutcomes(outcomes=outcomes, arm_order=arm_order)


def _build_chooser(name: str) -> Chooser:
    if name == "greedy":
        return EpsilonGreedyChooser()
    return UniformRandomChooser()


def main() -> None:
    """Execute the bandit CLI and exit with returned code."""

    raise SystemExit(run_bandit_cli())


if __name__ == "__main__":
    main()


__all__ = ["main", "run_bandit_cli"]
