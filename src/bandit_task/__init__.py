"""Top-level package for ``bandit_task``.

The package implements the core of an n-armed bandit experiment:

1. :func:`~bandit_task.config.validate_config` checks a declared task,
2. :func:`~bandit_task.generation.generate_outcomes` draws every outcome and
   the per-game arm display order up front,
3. :func:`~bandit_task.session.advance_trial` reveals outcomes one choice at a
   time while a host UI drives the session,
4. :func:`~bandit_task.export.export_session_record` produces the flat
   per-trial record handed to storage.

Rendering, navigation and data upload belong to the host application.
"""

from .config import BanditConfig, ValidatedBanditConfig, bandit_config_from_mapping, load_bandit_config, validate_config
from .distributions import BetaSpec, DistributionSpec, ExGaussianSpec, ExponentialSpec, NormalSpec, UniformSpec
from .errors import BanditTaskError, ConfigError, SamplingDegenerateError, SequenceError
from .export import SessionRecord, export_session_record, session_record_rows
from .generation import ArmOrder, GeneratedOutcomes, OutcomeTable, draw_arm_order, generate_outcomes
from .session import (
    SequencePhase,
    SessionState,
    TrialRecord,
    TrialResult,
    acknowledge_interstitial,
    advance_trial,
    arm_at_position,
    start_session,
)
from .simulation import simulate_session

__all__ = [
    "ArmOrder",
    "BanditConfig",
    "BanditTaskError",
    "BetaSpec",
    "ConfigError",
    "DistributionSpec",
    "ExGaussianSpec",
    "ExponentialSpec",
    "GeneratedOutcomes",
    "NormalSpec",
    "OutcomeTable",
    "SamplingDegenerateError",
    "SequenceError",
    "SequencePhase",
    "SessionRecord",
    "SessionState",
    "TrialRecord",
    "TrialResult",
    "UniformSpec",
    "ValidatedBanditConfig",
    "acknowledge_interstitial",
    "advance_trial",
    "arm_at_position",
    "bandit_config_from_mapping",
    "draw_arm_order",
    "export_session_record",
    "generate_outcomes",
    "load_bandit_config",
    "session_record_rows",
    "simulate_session",
    "start_session",
    "validate_config",
]
