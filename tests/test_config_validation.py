"""Tests for bandit task configuration parsing and validation."""

from __future__ import annotations

import pytest

from bandit_task.config import (
    BanditConfig,
    bandit_config_from_mapping,
    load_bandit_config,
    validate_config,
)
from bandit_task.distributions import ExGaussianSpec, NormalSpec, UniformSpec
from bandit_task.errors import ConfigError


def _practice_config(**overrides) -> dict:
    """Build the one-practice-plus-one-game mapping used across tests."""

    config = {
        "trials_per_game": [2, 3],
        "n_arms": 2,
        "practice": True,
        "precision": 1,
        "distributions": [["uniform", "normal"], ["uniform", "normal"]],
        "parameters": {
            "min": [[0, None], [0, None]],
            "max": [[1, None], [1, None]],
            "mean": [[None, 5], [None, 5]],
            "sd": [[None, 1], [None, 1]],
        },
    }
    config.update(overrides)
    return config


def test_validate_config_builds_spec_grid() -> None:
    """Validation should normalize each cell into its distribution spec."""

    validated = validate_config(_practice_config())

    assert validated.n_games == 2
    assert validated.n_arms == 2
    assert validated.total_trials == 5
    assert validated.practice is True
    assert validated.is_practice(0)
    assert not validated.is_practice(1)
    assert validated.spec(0, 0) == UniformSpec(min=0.0, max=1.0)
    assert validated.spec(1, 1) == NormalSpec(mean=5.0, sd=1.0)


def test_validate_config_is_idempotent() -> None:
    """Already validated configs should pass through unchanged."""

    validated = validate_config(_practice_config())
    assert validate_config(validated) is validated


def test_validate_config_accepts_dataclass_input() -> None:
    """Declared dataclass configs should validate like mappings."""

    config = BanditConfig(
        trials_per_game=(4,),
        n_arms=3,
        distributions="exponential",
        parameters={"rate": [[1.0, 2.0, 0.5]]},
    )
    validated = validate_config(config)

    assert validated.trials_per_game == (4,)
    assert [spec.rate for spec in validated.specs[0]] == [1.0, 2.0, 0.5]


def test_per_arm_distribution_list_is_broadcast_to_games() -> None:
    """A flat list of kinds should apply to every game."""

    validated = validate_config(
        {
            "trials_per_game": [1, 1, 1],
            "n_arms": 2,
            "distributions": ["beta", "exgaussian"],
            "parameters": {
                "shape1": [[2, None]] * 3,
                "shape2": [[3, None]] * 3,
                "mu": [[None, 0]] * 3,
                "sigma": [[None, 1]] * 3,
                "tau": [[None, 2]] * 3,
            },
        }
    )

    for game in validated.specs:
        assert game[0].kind == "beta"
        assert game[1] == ExGaussianSpec(mu=0.0, sigma=1.0, tau=2.0, positive=False)


def test_uniform_with_min_above_max_is_rejected_with_coordinates() -> None:
    """Uniform(min=5, max=2) should fail validation naming the offending cell."""

    config = _practice_config(
        parameters={
            "min": [[0, None], [5, None]],
            "max": [[1, None], [2, None]],
            "mean": [[None, 5], [None, 5]],
            "sd": [[None, 1], [None, 1]],
        }
    )

    with pytest.raises(ConfigError, match="min must be strictly less than max") as excinfo:
        validate_config(config)

    assert excinfo.value.game == 1
    assert excinfo.value.arm == 0
    assert excinfo.value.parameter == "min"
    assert "game=1, arm=0" in str(excinfo.value)


def test_missing_required_parameter_is_rejected() -> None:
    """A cell whose kind needs an unset parameter should be rejected."""

    config = _practice_config(
        parameters={
            "min": [[0, None], [0, None]],
            "max": [[1, None], [1, None]],
            "mean": [[None, 5], [None, 5]],
            "sd": [[None, 1], [None, None]],
        }
    )

    with pytest.raises(ConfigError, match="requires parameter 'sd'") as excinfo:
        validate_config(config)

    assert (excinfo.value.game, excinfo.value.arm, excinfo.value.parameter) == (1, 1, "sd")


@pytest.mark.parametrize(
    ("kind", "parameters", "message"),
    [
        ("normal", {"mean": [[0, 0]], "sd": [[1, 0]]}, "sd must be > 0"),
        ("beta", {"shape1": [[1, -1]], "shape2": [[1, 1]]}, "shape1 must be > 0"),
        ("exponential", {"rate": [[1, 0]]}, "rate must be > 0"),
        (
            "exgaussian",
            {"mu": [[0, 0]], "sigma": [[1, 1]], "tau": [[1, -0.5]]},
            "tau must be >= 0",
        ),
        (
            "exgaussian",
            {"mu": [[0, 0]], "sigma": [[1, 1]], "tau": [[1, 1]], "positive": [[True, "yes"]]},
            "positive must be a boolean",
        ),
        ("normal", {"mean": [[0, "high"]], "sd": [[1, 1]]}, "mean must be a number"),
        ("normal", {"mean": [[0, float("nan")]], "sd": [[1, 1]]}, "mean must be finite"),
    ],
)
def test_invalid_parameter_values_are_rejected(kind: str, parameters: dict, message: str) -> None:
    """Constraint violations should be reported for the second arm."""

    with pytest.raises(ConfigError, match=message) as excinfo:
        validate_config(
            {
                "trials_per_game": [3],
                "n_arms": 2,
                "distributions": kind,
                "parameters": parameters,
            }
        )

    assert excinfo.value.arm == 1


def test_parameter_table_dimensions_are_checked() -> None:
    """Tables must have one row per game and one column per arm."""

    with pytest.raises(ConfigError, match="2 rows; expected 3"):
        validate_config(
            {
                "trials_per_game": [1, 1, 1],
                "n_arms": 2,
                "distributions": "exponential",
                "parameters": {"rate": [[1, 1], [1, 1]]},
            }
        )

    with pytest.raises(ConfigError, match="3 columns; expected 2") as excinfo:
        validate_config(
            {
                "trials_per_game": [1, 1],
                "n_arms": 2,
                "distributions": "exponential",
                "parameters": {"rate": [[1, 1], [1, 1, 1]]},
            }
        )
    assert excinfo.value.game == 1


@pytest.mark.parametrize("n_arms", [1, 7, True, 2.0])
def test_n_arms_must_be_between_two_and_six(n_arms) -> None:
    """Arm counts outside 2..6 should be rejected."""

    with pytest.raises(ConfigError, match="n_arms"):
        validate_config(_practice_config(n_arms=n_arms))


@pytest.mark.parametrize("trials", [[], [3, 0], [2, -1], "12", [2.5]])
def test_trials_per_game_must_be_positive_integers(trials) -> None:
    """Trial counts must form a non-empty list of positive integers."""

    with pytest.raises(ConfigError, match="trials_per_game"):
        validate_config(
            {"trials_per_game": trials, "n_arms": 2, "distributions": "exponential", "parameters": {}}
        )


def test_practice_requires_a_following_game() -> None:
    """A practice game alone is not a complete task."""

    with pytest.raises(ConfigError, match="practice game requires"):
        validate_config(
            {
                "trials_per_game": [3],
                "n_arms": 2,
                "practice": True,
                "distributions": "exponential",
                "parameters": {"rate": [[1, 1]]},
            }
        )


def test_unknown_distribution_kind_is_rejected() -> None:
    """Unknown kind names should be reported against the distributions field."""

    with pytest.raises(ConfigError, match="unknown distribution kind 'poisson'") as excinfo:
        validate_config(
            {"trials_per_game": [1], "n_arms": 2, "distributions": ["poisson", "normal"], "parameters": {}}
        )

    assert excinfo.value.parameter == "distributions"
    assert excinfo.value.arm == 0


def test_negative_precision_is_rejected() -> None:
    """Precision must be a non-negative digit count."""

    with pytest.raises(ConfigError, match="precision"):
        validate_config(_practice_config(precision=-1))


def test_mapping_parser_rejects_unknown_keys() -> None:
    """Strict parsing should reject misspelled top-level and parameter keys."""

    with pytest.raises(ConfigError, match="config has unknown keys: \\['n_arm'\\]"):
        bandit_config_from_mapping({**_practice_config(), "n_arm": 2})

    with pytest.raises(ConfigError, match="parameters has unknown keys: \\['stdev'\\]"):
        validate_config(_practice_config(parameters={"stdev": [[1, 1], [1, 1]]}))


def test_mapping_parser_requires_core_keys() -> None:
    """Missing required keys should be listed."""

    with pytest.raises(ConfigError, match="missing required keys: \\['distributions'\\]"):
        bandit_config_from_mapping({"trials_per_game": [1], "n_arms": 2})


def test_load_bandit_config_reads_yaml(tmp_path) -> None:
    """Config files should load and validate in one step."""

    path = tmp_path / "task.yaml"
    path.write_text(
        "trials_per_game: [2, 3]\n"
        "n_arms: 2\n"
        "practice: true\n"
        "precision: 1\n"
        "seed: 7\n"
        "distributions: [uniform, normal]\n"
        "parameters:\n"
        "  min: [[0, null], [0, null]]\n"
        "  max: [[1, null], [1, null]]\n"
        "  mean: [[null, 5], [null, 5]]\n"
        "  sd: [[null, 1], [null, 1]]\n",
        encoding="utf-8",
    )

    validated = load_bandit_config(path)

    assert validated.seed == 7
    assert validated.precision == 1
    assert validated.spec(0, 1) == NormalSpec(mean=5.0, sd=1.0)
