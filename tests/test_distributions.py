"""Tests for outcome distribution specs and sampling."""

from __future__ import annotations

import numpy as np
import pytest
from scipy import stats

from bandit_task.distributions import (
    BetaSpec,
    ExGaussianSpec,
    ExponentialSpec,
    NormalSpec,
    UniformSpec,
    build_distribution_spec,
)
from bandit_task.errors import ConfigError, SamplingDegenerateError

ALPHA = 0.001


def test_normal_samples_follow_location_and_scale() -> None:
    """Normal draws should pass a KS test against the configured Gaussian."""

    samples = NormalSpec(mean=5.0, sd=2.0).sample(np.random.default_rng(1), 5000)

    _, p_value = stats.kstest(samples, stats.norm(loc=5.0, scale=2.0).cdf)
    assert p_value > ALPHA


def test_uniform_samples_stay_in_range() -> None:
    """Uniform draws should be uniform over ``[min, max)``."""

    samples = UniformSpec(min=-1.0, max=3.0).sample(np.random.default_rng(2), 5000)

    assert samples.min() >= -1.0
    assert samples.max() <= 3.0
    _, p_value = stats.kstest(samples, stats.uniform(loc=-1.0, scale=4.0).cdf)
    assert p_value > ALPHA


def test_beta_samples_follow_shapes() -> None:
    """Beta draws should lie on [0, 1] and match the configured shapes."""

    samples = BetaSpec(shape1=2.0, shape2=5.0).sample(np.random.default_rng(3), 5000)

    assert np.all((samples >= 0.0) & (samples <= 1.0))
    _, p_value = stats.kstest(samples, stats.beta(2.0, 5.0).cdf)
    assert p_value > ALPHA


def test_exponential_uses_rate_parameterization() -> None:
    """Exponential draws should have mean ``1 / rate``."""

    samples = ExponentialSpec(rate=4.0).sample(np.random.default_rng(4), 5000)

    assert samples.mean() == pytest.approx(0.25, rel=0.1)
    _, p_value = stats.kstest(samples, stats.expon(scale=0.25).cdf)
    assert p_value > ALPHA


def test_exgaussian_matches_exponnorm() -> None:
    """Ex-Gaussian draws should match scipy's exponentially modified normal."""

    spec = ExGaussianSpec(mu=1.0, sigma=0.5, tau=2.0)
    samples = spec.sample(np.random.default_rng(5), 5000)

    reference = stats.exponnorm(K=2.0 / 0.5, loc=1.0, scale=0.5)
    _, p_value = stats.kstest(samples, reference.cdf)
    assert p_value > ALPHA
    assert samples.mean() == pytest.approx(3.0, rel=0.05)


def test_exgaussian_with_zero_tau_is_gaussian() -> None:
    """``tau=0`` should reduce to the Gaussian component."""

    samples = ExGaussianSpec(mu=0.0, sigma=1.0, tau=0.0).sample(np.random.default_rng(6), 5000)

    _, p_value = stats.kstest(samples, stats.norm(loc=0.0, scale=1.0).cdf)
    assert p_value > ALPHA


def test_positive_exgaussian_never_negative() -> None:
    """Positive ex-Gaussian should never yield a negative value in 10,000 draws."""

    spec = ExGaussianSpec(mu=0.0, sigma=2.0, tau=1.0, positive=True)
    samples = spec.sample(np.random.default_rng(7), 10_000)

    assert samples.shape == (10_000,)
    assert np.all(samples >= 0.0)


def test_positive_exgaussian_resamples_instead_of_clipping() -> None:
    """Resampling should leave no pile-up of values at zero."""

    spec = ExGaussianSpec(mu=0.0, sigma=1.0, tau=0.5, positive=True)
    samples = spec.sample(np.random.default_rng(8), 10_000)

    assert np.count_nonzero(samples == 0.0) == 0


def test_positive_exgaussian_raises_when_resampling_is_hopeless() -> None:
    """An ex-Gaussian far below zero should fail after the retry cap."""

    spec = ExGaussianSpec(mu=-1000.0, sigma=1.0, tau=0.0, positive=True)

    with pytest.raises(SamplingDegenerateError, match="after 5 resampling rounds"):
        spec.sample(np.random.default_rng(9), 10, max_resample_rounds=5)


def test_build_distribution_spec_ignores_unrelated_parameters() -> None:
    """Parameters of other kinds should be ignored for a cell."""

    spec = build_distribution_spec("Normal", {"mean": 1, "sd": 2, "rate": None, "min": 99})

    assert spec == NormalSpec(mean=1.0, sd=2.0)


def test_build_distribution_spec_defaults_positive_flag() -> None:
    """The ex-Gaussian ``positive`` flag should default to ``False``."""

    spec = build_distribution_spec("exgaussian", {"mu": 0, "sigma": 1, "tau": 1})

    assert isinstance(spec, ExGaussianSpec)
    assert spec.positive is False


def test_build_distribution_spec_rejects_bool_as_number() -> None:
    """Booleans should not be accepted as numeric parameters."""

    with pytest.raises(ConfigError, match="rate must be a number"):
        build_distribution_spec("exponential", {"rate": True})
