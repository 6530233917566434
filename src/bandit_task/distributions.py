"""Outcome distributions available to bandit arms.

Each arm of each game is governed by one frozen spec object. Specs validate
their own parameters on construction and draw samples from a caller-supplied
:class:`numpy.random.Generator`, so all randomness stays under the caller's
seed.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union

import numpy as np

from bandit_task.errors import ConfigError, SamplingDegenerateError

DEFAULT_MAX_RESAMPLE_ROUNDS = 1000


@dataclass(frozen=True, slots=True)
class NormalSpec:
    """Gaussian outcomes with location ``mean`` and scale ``sd``."""

    mean: float
    sd: float

    kind: ClassVar[str] = "normal"
    parameter_names: ClassVar[tuple[str, ...]] = ("mean", "sd")

    def __post_init__(self) -> None:
        _require_finite(self.mean, "mean")
        _require_finite(self.sd, "sd")
        if self.sd <= 0:
            raise ConfigError("sd must be > 0", parameter="sd")

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.normal(loc=self.mean, scale=self.sd, size=size)


@dataclass(frozen=True, slots=True)
class UniformSpec:
    """Uniform outcomes drawn from ``[min, max)``.

    Notes
    -----
    NumPy draws from the half-open interval; after rounding to the task
    precision either bound can occur.
    """

    min: float
    max: float

    kind: ClassVar[str] = "uniform"
    parameter_names: ClassVar[tuple[str, ...]] = ("min", "max")

    def __post_init__(self) -> None:
        _require_finite(self.min, "min")
        _require_finite(self.max, "max")
        if not self.min < self.max:
            raise ConfigError(
                f"min must be strictly less than max (got min={self.min}, max={self.max})",
                parameter="min",
            )

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.uniform(low=self.min, high=self.max, size=size)


@dataclass(frozen=True, slots=True)
class BetaSpec:
    """Beta outcomes on ``[0, 1]`` with two shape parameters."""

    shape1: float
    shape2: float

    kind: ClassVar[str] = "beta"
    parameter_names: ClassVar[tuple[str, ...]] = ("shape1", "shape2")

    def __post_init__(self) -> None:
        for name in self.parameter_names:
            value = getattr(self, name)
            _require_finite(value, name)
            if value <= 0:
                raise ConfigError(f"{name} must be > 0", parameter=name)

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.beta(a=self.shape1, b=self.shape2, size=size)


@dataclass(frozen=True, slots=True)
class ExponentialSpec:
    """Exponential outcomes parameterized by ``rate`` (mean ``1 / rate``)."""

    rate: float

    kind: ClassVar[str] = "exponential"
    parameter_names: ClassVar[tuple[str, ...]] = ("rate",)

    def __post_init__(self) -> None:
        _require_finite(self.rate, "rate")
        if self.rate <= 0:
            raise ConfigError("rate must be > 0", parameter="rate")

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.exponential(scale=1.0 / self.rate, size=size)


@dataclass(frozen=True, slots=True)
class ExGaussianSpec:
    """Sum of ``Normal(mu, sigma)`` and ``Exponential(mean=tau)`` draws.

    Parameters
    ----------
    mu : float
        Mean of the Gaussian component.
    sigma : float
        Standard deviation of the Gaussian component.
    tau : float
        Mean of the exponential component. ``0`` reduces to a Gaussian.
    positive : bool, optional
        When true, negative draws are redrawn until every value is
        non-negative. Draws are never clipped, so the shape of the
        distribution above zero is preserved.
    """

    mu: float
    sigma: float
    tau: float
    positive: bool = False

    kind: ClassVar[str] = "exgaussian"
    parameter_names: ClassVar[tuple[str, ...]] = ("mu", "sigma", "tau", "positive")

    def __post_init__(self) -> None:
        _require_finite(self.mu, "mu")
        _require_finite(self.sigma, "sigma")
        _require_finite(self.tau, "tau")
        if self.sigma <= 0:
            raise ConfigError("sigma must be > 0", parameter="sigma")
        if self.tau < 0:
            raise ConfigError("tau must be >= 0", parameter="tau")
        if not isinstance(self.positive, (bool, np.bool_)):
            raise ConfigError("positive must be a boolean", parameter="positive")

    def sample(
        self,
        rng: np.random.Generator,
        size: int,
        *,
        max_resample_rounds: int = DEFAULT_MAX_RESAMPLE_ROUNDS,
    ) -> np.ndarray:
        """Draw ``size`` outcomes.

        Parameters
        ----------
        rng : numpy.random.Generator
            Source of randomness.
        size : int
            Number of outcomes.
        max_resample_rounds : int, optional
            Maximum number of redraw passes over negative values when
            ``positive`` is set.

        Returns
        -------
        numpy.ndarray
            Sampled outcomes.

        Raises
        ------
        SamplingDegenerateError
            If negative values remain after ``max_resample_rounds`` passes.
        """

        values = self._draw(rng, size)
        if not self.positive:
            return values

        for _ in range(max_resample_rounds):
            negative = values < 0
            n_negative = int(np.count_nonzero(negative))
            if n_negative == 0:
                return values
            values[negative] = self._draw(rng, n_negative)

        if np.any(values < 0):
            raise SamplingDegenerateError(
                "positive ex-Gaussian with "
                f"mu={self.mu}, sigma={self.sigma}, tau={self.tau} still produced negative "
                f"outcomes after {max_resample_rounds} resampling rounds"
            )
        return values

    def _draw(self, rng: np.random.Generator, size: int) -> np.ndarray:
        gaussian = rng.normal(loc=self.mu, scale=self.sigma, size=size)
        if self.tau == 0:
            return gaussian
        return gaussian + rng.exponential(scale=self.tau, size=size)


DistributionSpec = Union[NormalSpec, UniformSpec, BetaSpec, ExponentialSpec, ExGaussianSpec]

DISTRIBUTION_SPECS: dict[str, type] = {
    spec_type.kind: spec_type
    for spec_type in (NormalSpec, UniformSpec, BetaSpec, ExponentialSpec, ExGaussianSpec)
}

# Parameters with a fixed default when the cell leaves them unset.
_OPTIONAL_DEFAULTS: dict[str, dict[str, Any]] = {
    "exgaussian": {"positive": False},
}


def build_distribution_spec(kind: str, parameters: Mapping[str, Any]) -> DistributionSpec:
    """Create a spec from a kind name and a parameter mapping.

    Parameters
    ----------
    kind : str
        Distribution kind name (see :data:`DISTRIBUTION_SPECS`).
    parameters : Mapping[str, Any]
        Parameter values keyed by name. Keys not used by ``kind`` are ignored;
        ``None`` values count as unset.

    Returns
    -------
    DistributionSpec
        Validated spec.

    Raises
    ------
    ConfigError
        If ``kind`` is unknown or a required parameter is missing or invalid.
    """

    spec_type = DISTRIBUTION_SPECS.get(str(kind).strip().lower())
    if spec_type is None:
        raise ConfigError(
            f"unknown distribution kind {kind!r}; expected one of {sorted(DISTRIBUTION_SPECS)}"
        )

    defaults = _OPTIONAL_DEFAULTS.get(spec_type.kind, {})
    kwargs: dict[str, Any] = {}
    for name in spec_type.parameter_names:
        value = parameters.get(name)
        if value is None:
            if name not in defaults:
                raise ConfigError(
                    f"{spec_type.kind} distribution requires parameter {name!r}",
                    parameter=name,
                )
            value = defaults[name]
        kwargs[name] = _coerce_bool(value, name) if name == "positive" else _coerce_float(value, name)
    return spec_type(**kwargs)


def _coerce_float(value: Any, name: str) -> float:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise ConfigError(f"{name} must be a number, got {value!r}", parameter=name)
    return float(value)


def _coerce_bool(value: Any, name: str) -> bool:
    if not isinstance(value, (bool, np.bool_)):
        raise ConfigError(f"{name} must be a boolean, got {value!r}", parameter=name)
    return bool(value)


def _require_finite(value: float, name: str) -> None:
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite", parameter=name)


__all__ = [
    "BetaSpec",
    "DEFAULT_MAX_RESAMPLE_ROUNDS",
    "DISTRIBUTION_SPECS",
    "DistributionSpec",
    "ExGaussianSpec",
    "ExponentialSpec",
    "NormalSpec",
    "UniformSpec",
    "build_distribution_spec",
]
