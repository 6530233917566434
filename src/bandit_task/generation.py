"""Eager outcome generation for every game, arm and trial.

Outcomes are fixed before the first trial is shown so a session can be
replayed and audited. The generator seeds one :class:`numpy.random.SeedSequence`
and spawns two independent child streams: one for outcome draws and one for
per-game arm display order. Changing how arm order is drawn therefore never
changes which outcomes an arm pays.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from bandit_task.config import BanditConfig, ValidatedBanditConfig, validate_config, validate_precision, validate_seed
from bandit_task.distributions import DEFAULT_MAX_RESAMPLE_ROUNDS, ExGaussianSpec
from bandit_task.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OutcomeTable:
    """Immutable outcome values indexed ``[game][arm][trial]``.

    Parameters
    ----------
    values : tuple[tuple[tuple[float, ...], ...], ...]
        Rounded outcomes. All arms of one game hold the same number of trials.
    precision : int
        Number of decimal digits the values were rounded to.

    Raises
    ------
    ValueError
        If the table is empty, arms of one game differ in length, or a value
        is not finite or not rounded to ``precision``.
    """

    values: tuple[tuple[tuple[float, ...], ...], ...]
    precision: int

    def __post_init__(self) -> None:
        if len(self.values) == 0:
            raise ValueError("outcome table must contain at least one game")
        n_arms = len(self.values[0])
        for game_index, game in enumerate(self.values):
            if len(game) != n_arms:
                raise ValueError(f"game {game_index} has {len(game)} arms; expected {n_arms}")
            lengths = {len(arm) for arm in game}
            if len(lengths) != 1:
                raise ValueError(f"arms of game {game_index} hold different trial counts: {sorted(lengths)}")
        if isinstance(self.precision, bool) or not isinstance(self.precision, int) or self.precision < 0:
            raise ValueError(f"precision must be a non-negative integer, got {self.precision!r}")
        for game_index, game in enumerate(self.values):
            for arm_index, arm in enumerate(game):
                for trial_index, (value, rounded) in enumerate(zip(arm, round_outcomes(arm, self.precision))):
                    if not math.isfinite(value):
                        raise ValueError(
                            f"outcome at game {game_index}, arm {arm_index}, trial {trial_index} is not finite: {value!r}"
                        )
                    if value != rounded:
                        raise ValueError(
                            f"outcome at game {game_index}, arm {arm_index}, trial {trial_index} is not rounded "
                            f"to {self.precision} decimal digits: {value!r}"
                        )

    @property
    def n_games(self) -> int:
        return len(self.values)

    @property
    def n_arms(self) -> int:
        return len(self.values[0])

    @property
    def trials_per_game(self) -> tuple[int, ...]:
        return tuple(len(game[0]) for game in self.values)

    def outcome(self, game_index: int, arm_index: int, trial_index: int) -> float:
        """Return one outcome value."""

        return self.values[game_index][arm_index][trial_index]

    def game_array(self, game_index: int) -> np.ndarray:
        """Return one game as an ``(n_arms, n_trials)`` array copy."""

        return np.asarray(self.values[game_index], dtype=float)

    def check_matches(self, config: ValidatedBanditConfig) -> None:
        """Raise :class:`ConfigError` when the table shape differs from ``config``."""

        if self.n_arms != config.n_arms:
            raise ConfigError(
                f"outcome table has {self.n_arms} arms; config declares {config.n_arms}",
                parameter="n_arms",
            )
        if self.trials_per_game != config.trials_per_game:
            raise ConfigError(
                f"outcome table trial counts {list(self.trials_per_game)} differ from "
                f"config {list(config.trials_per_game)}",
                parameter="trials_per_game",
            )


@dataclass(frozen=True, slots=True)
class ArmOrder:
    """Per-game mapping from display position to logical arm.

    Parameters
    ----------
    orders : tuple[tuple[int, ...], ...]
        ``orders[game][position]`` is the arm shown at ``position``. Each row
        is a permutation of ``0..n_arms-1``.
    """

    orders: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        if len(self.orders) == 0:
            raise ValueError("arm order must contain at least one game")
        n_arms = len(self.orders[0])
        for game_index, order in enumerate(self.orders):
            if sorted(order) != list(range(n_arms)):
                raise ValueError(
                    f"arm order for game {game_index} is not a permutation of 0..{n_arms - 1}: {list(order)}"
                )

    @property
    def n_games(self) -> int:
        return len(self.orders)

    @property
    def n_arms(self) -> int:
        return len(self.orders[0])

    def for_game(self, game_index: int) -> tuple[int, ...]:
        return self.orders[game_index]

    def arm_at(self, game_index: int, position: int) -> int:
        """Return the logical arm displayed at ``position`` in one game."""

        return self.orders[game_index][position]

    def position_of(self, game_index: int, arm_index: int) -> int:
        """Return the display position of ``arm_index`` in one game."""

        return self.orders[game_index].index(arm_index)

    def check_matches(self, config: ValidatedBanditConfig) -> None:
        """Raise :class:`ConfigError` when the order shape differs from ``config``."""

        if self.n_games != config.n_games or self.n_arms != config.n_arms:
            raise ConfigError(
                f"arm order covers {self.n_games} games x {self.n_arms} arms; "
                f"config declares {config.n_games} x {config.n_arms}",
                parameter="arm_order",
            )


@dataclass(frozen=True, slots=True)
class GeneratedOutcomes:
    """Outcome table and arm order for one session.

    Parameters
    ----------
    outcomes : OutcomeTable
        Pre-drawn outcomes.
    arm_order : ArmOrder
        Per-game display order.
    seed : int | None
        Root seed that reproduces both. ``None`` when the outcomes were
        loaded rather than generated.
    """

    outcomes: OutcomeTable
    arm_order: ArmOrder
    seed: int | None = None


def generate_outcomes(
    config: BanditConfig | ValidatedBanditConfig | Mapping[str, Any],
    precision: int | None = None,
    seed: int | None = None,
    *,
    max_resample_rounds: int = DEFAULT_MAX_RESAMPLE_ROUNDS,
) -> GeneratedOutcomes:
    """Draw the full outcome table and arm order for one session.

    Parameters
    ----------
    config : BanditConfig | ValidatedBanditConfig | Mapping[str, Any]
        Task configuration. Unvalidated input is validated first, so invalid
        parameters are rejected before any sampling.
    precision : int | None, optional
        Decimal digits outcomes are rounded to. Defaults to
        ``config.precision``.
    seed : int | None, optional
        Root seed. Defaults to ``config.seed``; when both are ``None`` fresh
        entropy is drawn and reported in the result.
    max_resample_rounds : int, optional
        Resampling cap for positive ex-Gaussian cells.

    Returns
    -------
    GeneratedOutcomes
        Outcome table, arm order and the root seed that reproduces them.

    Raises
    ------
    ConfigError
        If the configuration or precision is invalid.
    SamplingDegenerateError
        If a positive ex-Gaussian cell cannot produce non-negative outcomes.
    """

    validated = validate_config(config)
    digits = validate_precision(validated.precision if precision is None else precision)
    root_seed = validated.seed if seed is None else validate_seed(seed)

    seed_sequence = np.random.SeedSequence(root_seed)
    outcome_seed, order_seed = seed_sequence.spawn(2)
    outcome_rng = np.random.default_rng(outcome_seed)

    games: list[tuple[tuple[float, ...], ...]] = []
    for game_index, n_trials in enumerate(validated.trials_per_game):
        arms: list[tuple[float, ...]] = []
        for arm_index in range(validated.n_arms):
            spec = validated.spec(game_index, arm_index)
            if isinstance(spec, ExGaussianSpec):
                draws = spec.sample(outcome_rng, n_trials, max_resample_rounds=max_resample_rounds)
            else:
                draws = spec.sample(outcome_rng, n_trials)
            arms.append(round_outcomes(draws, digits))
        games.append(tuple(arms))

    arm_order = draw_arm_order(validated.n_games, validated.n_arms, np.random.default_rng(order_seed))
    entropy = int(seed_sequence.entropy)
    logger.debug(
        "generated outcomes for %d games x %d arms (%d trials) with seed %d",
        validated.n_games,
        validated.n_arms,
        validated.total_trials,
        entropy,
    )
    return GeneratedOutcomes(
        outcomes=OutcomeTable(values=tuple(games), precision=digits),
        arm_order=arm_order,
        seed=entropy,
    )


def draw_arm_order(n_games: int, n_arms: int, rng: np.random.Generator) -> ArmOrder:
    """Draw one independent display permutation per game.

    Parameters
    ----------
    n_games : int
        Number of games.
    n_arms : int
        Number of arms.
    rng : numpy.random.Generator
        Random generator used only for display order.

    Returns
    -------
    ArmOrder
        Per-game permutations of ``0..n_arms-1``.
    """

    return ArmOrder(
        orders=tuple(
            tuple(int(arm) for arm in rng.permutation(n_arms))
            for _ in range(n_games)
        )
    )


def round_outcomes(values: Sequence[float] | np.ndarray, precision: int) -> tuple[float, ...]:
    """Round raw draws to ``precision`` decimal digits.

    Negative zero produced by rounding small negative draws is normalized to
    ``0.0``.
    """

    rounded = np.round(np.asarray(values, dtype=float), precision) + 0.0
    return tuple(float(value) for value in rounded)


__all__ = [
    "ArmOrder",
    "GeneratedOutcomes",
    "OutcomeTable",
    "draw_arm_order",
    "generate_outcomes",
    "round_outcomes",
]
