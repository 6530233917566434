"""Bandit task configuration and its validator.

A task is declared as a list of trial counts (one per game), a number of arms,
a games-by-arms grid of distribution kinds, and one games-by-arms table per
distribution parameter. :func:`validate_config` checks the declaration before
any sampling happens and normalizes it into a grid of
:mod:`~bandit_task.distributions` specs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bandit_task.core import (
    load_config_mapping,
    validate_allowed_keys,
    validate_required_keys,
    validate_table_shape,
)
from bandit_task.distributions import DISTRIBUTION_SPECS, DistributionSpec, build_distribution_spec
from bandit_task.errors import ConfigError

MIN_ARMS = 2
MAX_ARMS = 6

PARAMETER_NAMES: tuple[str, ...] = tuple(
    sorted({name for spec_type in DISTRIBUTION_SPECS.values() for name in spec_type.parameter_names})
)

_CONFIG_KEYS = (
    "trials_per_game",
    "n_arms",
    "practice",
    "distributions",
    "parameters",
    "precision",
    "seed",
)


@dataclass(frozen=True, slots=True)
class BanditConfig:
    """Declared (not yet validated) bandit task configuration.

    Parameters
    ----------
    trials_per_game : Sequence[int]
        Number of trials in each game, in play order. Its length defines the
        number of games.
    n_arms : int
        Number of arms, between 2 and 6.
    distributions : Any
        Distribution kind names. Either one name for every cell, one name per
        arm (applied to every game), or a games-by-arms grid.
    parameters : Mapping[str, Any], optional
        Games-by-arms table per parameter name. Cells not used by the cell's
        distribution kind are ignored and may be ``None``.
    practice : bool, optional
        Whether the first game is a non-scoring practice game.
    precision : int, optional
        Default number of decimal digits outcomes are rounded to.
    seed : int | None, optional
        Default seed for outcome generation.
    """

    trials_per_game: Sequence[int]
    n_arms: int
    distributions: Any
    parameters: Mapping[str, Any] = field(default_factory=dict)
    practice: bool = False
    precision: int = 0
    seed: int | None = None


@dataclass(frozen=True, slots=True)
class ValidatedBanditConfig:
    """Normalized configuration produced by :func:`validate_config`.

    Parameters
    ----------
    trials_per_game : tuple[int, ...]
        Trial count for each game.
    n_arms : int
        Number of arms.
    specs : tuple[tuple[DistributionSpec, ...], ...]
        Distribution spec for each ``(game, arm)`` cell.
    practice : bool
        Whether game ``0`` is a practice game.
    precision : int
        Default rounding precision.
    seed : int | None
        Default generation seed.
    """

    trials_per_game: tuple[int, ...]
    n_arms: int
    specs: tuple[tuple[DistributionSpec, ...], ...]
    practice: bool = False
    precision: int = 0
    seed: int | None = None

    @property
    def n_games(self) -> int:
        """Number of games, including the practice game."""

        return len(self.trials_per_game)

    @property
    def total_trials(self) -> int:
        """Number of trials across all games."""

        return int(sum(self.trials_per_game))

    def is_practice(self, game_index: int) -> bool:
        """Return whether ``game_index`` is the practice game."""

        return self.practice and game_index == 0

    def spec(self, game_index: int, arm_index: int) -> DistributionSpec:
        """Return the distribution spec for one cell."""

        return self.specs[game_index][arm_index]


def validate_config(config: BanditConfig | ValidatedBanditConfig | Mapping[str, Any]) -> ValidatedBanditConfig:
    """Validate a bandit configuration before sampling.

    Parameters
    ----------
    config : BanditConfig | ValidatedBanditConfig | Mapping[str, Any]
        Declared configuration, or a raw declarative mapping. An already
        validated config is returned unchanged.

    Returns
    -------
    ValidatedBanditConfig
        Normalized configuration.

    Raises
    ------
    ConfigError
        If dimensions are malformed or any required parameter is missing or
        invalid. The error carries the offending ``game``, ``arm`` and
        ``parameter`` coordinates where they apply.
    """

    if isinstance(config, ValidatedBanditConfig):
        return config
    if isinstance(config, Mapping):
        config = bandit_config_from_mapping(config)

    trials_per_game = _validate_trials_per_game(config.trials_per_game)
    n_games = len(trials_per_game)
    n_arms = _validate_n_arms(config.n_arms)
    practice = _coerce_flag(config.practice, field_name="practice")
    if practice and n_games < 2:
        raise ConfigError(
            "a practice game requires at least one further game",
            parameter="trials_per_game",
        )
    precision = validate_precision(config.precision)
    seed = None if config.seed is None else validate_seed(config.seed)

    kinds = _broadcast_kinds(config.distributions, n_games=n_games, n_arms=n_arms)
    tables = _validate_parameter_tables(config.parameters, n_games=n_games, n_arms=n_arms)

    specs: list[tuple[DistributionSpec, ...]] = []
    for game_index in range(n_games):
        row: list[DistributionSpec] = []
        for arm_index in range(n_arms):
            cell_parameters = {name: table[game_index][arm_index] for name, table in tables.items()}
            try:
                row.append(build_distribution_spec(kinds[game_index][arm_index], cell_parameters))
            except ConfigError as exc:
                raise ConfigError(
                    exc.detail,
                    game=game_index,
                    arm=arm_index,
                    parameter=exc.parameter or "distributions",
                ) from exc
        specs.append(tuple(row))

    return ValidatedBanditConfig(
        trials_per_game=trials_per_game,
        n_arms=n_arms,
        specs=tuple(specs),
        practice=practice,
        precision=precision,
        seed=seed,
    )


def bandit_config_from_mapping(mapping: Mapping[str, Any]) -> BanditConfig:
    """Parse a declarative mapping into :class:`BanditConfig`.

    Parameters
    ----------
    mapping : Mapping[str, Any]
        Mapping with keys ``trials_per_game``, ``n_arms``, ``distributions``
        and optionally ``parameters``, ``practice``, ``precision``, ``seed``.

    Returns
    -------
    BanditConfig
        Declared configuration. Values are checked by :func:`validate_config`.

    Raises
    ------
    ConfigError
        If unknown keys are present, required keys are missing, or
        ``parameters`` is not a mapping.
    """

    validate_allowed_keys(mapping, field_name="config", allowed_keys=_CONFIG_KEYS)
    validate_required_keys(
        mapping,
        field_name="config",
        required_keys=("trials_per_game", "n_arms", "distributions"),
    )

    parameters = mapping.get("parameters", {})
    if parameters is None:
        parameters = {}
    if not isinstance(parameters, Mapping):
        raise ConfigError("config.parameters must be a mapping of parameter tables")

    return BanditConfig(
        trials_per_game=mapping["trials_per_game"],
        n_arms=mapping["n_arms"],
        distributions=mapping["distributions"],
        parameters=dict(parameters),
        practice=mapping.get("practice", False),
        precision=mapping.get("precision", 0),
        seed=mapping.get("seed"),
    )


def load_bandit_config(path: str | Path, *, section: str | None = None) -> ValidatedBanditConfig:
    """Load and validate a JSON/YAML bandit task config file.

    Parameters
    ----------
    path : str | pathlib.Path
        Config file path (`.json`, `.yaml`, or `.yml`).
    section : str | None, optional
        Top-level key of an experiment file holding the task config.

    Returns
    -------
    ValidatedBanditConfig
        Validated configuration.
    """

    return validate_config(bandit_config_from_mapping(load_config_mapping(path, section=section)))


def validate_precision(precision: Any) -> int:
    """Validate a rounding precision (non-negative number of decimal digits)."""

    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        raise ConfigError(
            f"precision must be a non-negative integer, got {precision!r}",
            parameter="precision",
        )
    return precision


def validate_seed(raw: Any) -> int:
    """Validate a generation seed (non-negative integer)."""

    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ConfigError(f"must be a non-negative integer, got {raw!r}", parameter="seed")
    return raw


def _validate_trials_per_game(raw: Any) -> tuple[int, ...]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) == 0:
        raise ConfigError("must be a non-empty sequence of trial counts", parameter="trials_per_game")

    counts: list[int] = []
    for game_index, value in enumerate(raw):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError(
                f"trial count must be a positive integer, got {value!r}",
                game=game_index,
                parameter="trials_per_game",
            )
        counts.append(int(value))
    return tuple(counts)


def _validate_n_arms(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigError(f"must be an integer, got {raw!r}", parameter="n_arms")
    if not MIN_ARMS <= raw <= MAX_ARMS:
        raise ConfigError(f"must be between {MIN_ARMS} and {MAX_ARMS}, got {raw}", parameter="n_arms")
    return raw


def _broadcast_kinds(raw: Any, *, n_games: int, n_arms: int) -> tuple[tuple[str, ...], ...]:
    if isinstance(raw, str):
        return tuple((raw,) * n_arms for _ in range(n_games))

    if isinstance(raw, Sequence) and len(raw) > 0 and all(isinstance(item, str) for item in raw):
        if len(raw) != n_arms:
            raise ConfigError(
                f"per-arm distribution list has {len(raw)} entries; expected {n_arms}",
                parameter="distributions",
            )
        return tuple(tuple(raw) for _ in range(n_games))

    grid = validate_table_shape(raw, field_name="distributions", n_rows=n_games, n_columns=n_arms)
    for game_index, row in enumerate(grid):
        for arm_index, kind in enumerate(row):
            if not isinstance(kind, str):
                raise ConfigError(
                    f"distribution kind must be a string, got {kind!r}",
                    game=game_index,
                    arm=arm_index,
                    parameter="distributions",
                )
    return grid


def _validate_parameter_tables(
    raw: Mapping[str, Any],
    *,
    n_games: int,
    n_arms: int,
) -> dict[str, tuple[tuple[Any, ...], ...]]:
    validate_allowed_keys(raw, field_name="parameters", allowed_keys=PARAMETER_NAMES)
    return {
        str(name): validate_table_shape(table, field_name=str(name), n_rows=n_games, n_columns=n_arms)
        for name, table in raw.items()
        if table is not None
    }


def _coerce_flag(raw: Any, *, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigError(f"must be a boolean, got {raw!r}", parameter=field_name)
    return raw


__all__ = [
    "BanditConfig",
    "MAX_ARMS",
    "MIN_ARMS",
    "PARAMETER_NAMES",
    "ValidatedBanditConfig",
    "bandit_config_from_mapping",
    "load_bandit_config",
    "validate_config",
    "validate_precision",
    "validate_seed",
]
