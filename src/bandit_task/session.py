"""Trial sequencer for one participant session.

The sequencer is a small state machine over :class:`SequencePhase`. A host UI
holds one :class:`SessionState` per participant and drives it with two calls:

- :func:`advance_trial` when the participant selects an arm,
- :func:`acknowledge_interstitial` when the participant continues past the
  end-of-game (or end-of-practice) screen.

Each advance reveals exactly one pre-drawn outcome, appends exactly one
:class:`TrialRecord`, and never revisits an earlier trial.
"""

from __future__ import annotations

import logging
import math
import string
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from bandit_task.config import ValidatedBanditConfig
from bandit_task.errors import SequenceError
from bandit_task.generation import ArmOrder, GeneratedOutcomes, OutcomeTable

logger = logging.getLogger(__name__)

_COMPLETION_CODE_ALPHABET = string.ascii_uppercase + string.digits


class SequencePhase(str, Enum):
    """Phases of the trial sequencer.

    Attributes
    ----------
    AWAITING_CHOICE
        Waiting for the participant to select an arm.
    TRIAL_REVEALED
        The selected arm's outcome was revealed and recorded.
    GAME_COMPLETE
        The last trial of a scoring game was revealed; more games follow.
    PRACTICE_COMPLETE
        The practice game finished; a practice summary is shown next.
    ALL_GAMES_COMPLETE
        The last trial of the last game was revealed. Terminal.
    """

    AWAITING_CHOICE = "awaiting_choice"
    TRIAL_REVEALED = "trial_revealed"
    GAME_COMPLETE = "game_complete"
    PRACTICE_COMPLETE = "practice_complete"
    ALL_GAMES_COMPLETE = "all_games_complete"


@dataclass(frozen=True, slots=True)
class PhaseEntry:
    """One visited phase with the game/trial it applied to."""

    phase: SequencePhase
    game_index: int
    trial_index: int | None = None


@dataclass(frozen=True, slots=True)
class TrialRecord:
    """Log row for one revealed trial.

    Parameters
    ----------
    game_index : int
        Zero-based game index.
    trial_index : int
        Zero-based trial index within the game.
    practice : bool
        Whether the trial belongs to the practice game.
    selection : int
        Logical arm selected.
    display_position : int
        On-screen position of the selected arm.
    outcome : float
        Revealed outcome.
    points_cum : float
        Running total of the game after this trial.
    response_time : float | None
        Decision time in seconds reported by the host, if any.
    """

    game_index: int
    trial_index: int
    practice: bool
    selection: int
    display_position: int
    outcome: float
    points_cum: float
    response_time: float | None = None


@dataclass(slots=True)
class SessionState:
    """Mutable state of one participant session.

    Only :func:`advance_trial` and :func:`acknowledge_interstitial` mutate a
    session. Create instances with :func:`start_session`.
    """

    config: ValidatedBanditConfig
    outcomes: OutcomeTable
    arm_order: ArmOrder
    phase: SequencePhase = SequencePhase.AWAITING_CHOICE
    game_index: int = 0
    trial_index: int = 0
    points_cum: float = 0.0
    total_points: float = 0.0
    records: list[TrialRecord] = field(default_factory=list)
    phase_history: list[PhaseEntry] = field(default_factory=list)
    completion_code: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.phase is SequencePhase.ALL_GAMES_COMPLETE

    @property
    def current_arm_order(self) -> tuple[int, ...]:
        """Display order of the current game."""

        return self.arm_order.for_game(self.game_index)

    @property
    def game_totals(self) -> dict[int, float]:
        """Final (or current) running total per game played so far."""

        totals: dict[int, float] = {}
        for record in self.records:
            totals[record.game_index] = record.points_cum
        return totals


@dataclass(frozen=True, slots=True)
class TrialResult:
    """Return value of :func:`advance_trial`.

    Parameters
    ----------
    outcome : float
        Revealed outcome.
    cumulative_points : float
        Running total of the current game after this trial.
    state : SessionState
        The advanced session (same object that was passed in).
    record : TrialRecord
        Log row appended for this trial.
    """

    outcome: float
    cumulative_points: float
    state: SessionState
    record: TrialRecord


def start_session(
    config: ValidatedBanditConfig,
    generated: GeneratedOutcomes,
    *,
    completion_code: str | None = None,
) -> SessionState:
    """Create a session waiting for the first choice of the first game.

    Parameters
    ----------
    config : ValidatedBanditConfig
        Validated task configuration.
    generated : GeneratedOutcomes
        Outcome table and arm order for this session.
    completion_code : str | None, optional
        Code reported back to the participant at the end of the session.

    Returns
    -------
    SessionState
        New session in ``AWAITING_CHOICE`` for game ``0``, trial ``0``.

    Raises
    ------
    ConfigError
        If the outcome table or arm order does not match ``config``.
    """

    generated.outcomes.check_matches(config)
    generated.arm_order.check_matches(config)

    state = SessionState(
        config=config,
        outcomes=generated.outcomes,
        arm_order=generated.arm_order,
        completion_code=completion_code,
    )
    _enter(state, SequencePhase.AWAITING_CHOICE, trial_index=0)
    return state


def advance_trial(
    state: SessionState,
    arm: int,
    response_time: float | None = None,
) -> TrialResult:
    """Reveal the outcome of ``arm`` for the current trial.

    Parameters
    ----------
    state : SessionState
        Session in ``AWAITING_CHOICE``. Mutated in place.
    arm : int
        Logical arm index in ``0..n_arms-1``.
    response_time : float | None, optional
        Decision time in seconds, recorded as-is.

    Returns
    -------
    TrialResult
        Outcome, updated running total, the session and the new log row.

    Raises
    ------
    SequenceError
        If the session is complete, waiting for an interstitial
        acknowledgement, or ``arm`` is out of range.
    ValueError
        If ``response_time`` is not a non-negative finite number.
    """

    if state.phase is SequencePhase.ALL_GAMES_COMPLETE:
        raise SequenceError("session is complete; no further trials can be advanced")
    if state.phase is not SequencePhase.AWAITING_CHOICE:
        raise SequenceError(
            f"cannot advance a trial in phase {state.phase.value!r}; "
            "acknowledge the interstitial first"
        )
    n_arms = state.config.n_arms
    if isinstance(arm, bool) or not isinstance(arm, (int, np.integer)) or not 0 <= arm < n_arms:
        raise SequenceError(f"arm must be an integer in 0..{n_arms - 1}, got {arm!r}")
    if response_time is not None and (
        isinstance(response_time, bool)
        or not isinstance(response_time, (int, float, np.integer, np.floating))
        or not math.isfinite(response_time)
        or response_time < 0
    ):
        raise ValueError(f"response_time must be a non-negative finite number, got {response_time!r}")

    game_index = state.game_index
    trial_index = state.trial_index
    practice = state.config.is_practice(game_index)
    arm = int(arm)

    outcome = state.outcomes.outcome(game_index, arm, trial_index)
    state.points_cum = _add_points(state.points_cum, outcome, state.outcomes.precision)
    if not practice:
        state.total_points = _add_points(state.total_points, outcome, state.outcomes.precision)

    record = TrialRecord(
        game_index=game_index,
        trial_index=trial_index,
        practice=practice,
        selection=arm,
        display_position=state.arm_order.position_of(game_index, arm),
        outcome=outcome,
        points_cum=state.points_cum,
        response_time=None if response_time is None else float(response_time),
    )
    state.records.append(record)
    _enter(state, SequencePhase.TRIAL_REVEALED, trial_index=trial_index)

    if trial_index + 1 < state.config.trials_per_game[game_index]:
        state.trial_index = trial_index + 1
        _enter(state, SequencePhase.AWAITING_CHOICE, trial_index=state.trial_index)
    elif game_index + 1 == state.config.n_games:
        _enter(state, SequencePhase.ALL_GAMES_COMPLETE)
        logger.info(
            "session complete after %d trials; total points %s",
            len(state.records),
            state.total_points,
        )
    elif practice:
        _enter(state, SequencePhase.PRACTICE_COMPLETE)
    else:
        _enter(state, SequencePhase.GAME_COMPLETE)

    return TrialResult(
        outcome=outcome,
        cumulative_points=state.points_cum,
        state=state,
        record=record,
    )


def acknowledge_interstitial(state: SessionState) -> SessionState:
    """Continue from an end-of-game screen to the first trial of the next game.

    Parameters
    ----------
    state : SessionState
        Session in ``GAME_COMPLETE`` or ``PRACTICE_COMPLETE``. Mutated in
        place.

    Returns
    -------
    SessionState
        The same session, now in ``AWAITING_CHOICE`` for the next game.

    Raises
    ------
    SequenceError
        If the session is not waiting on an interstitial.
    """

    if state.phase not in {SequencePhase.GAME_COMPLETE, SequencePhase.PRACTICE_COMPLETE}:
        raise SequenceError(f"no interstitial to acknowledge in phase {state.phase.value!r}")

    state.game_index += 1
    state.trial_index = 0
    state.points_cum = 0.0
    _enter(state, SequencePhase.AWAITING_CHOICE, trial_index=0)
    return state


def arm_at_position(state: SessionState, position: int) -> int:
    """Return the logical arm shown at ``position`` in the current game.

    Raises
    ------
    SequenceError
        If ``position`` is outside ``0..n_arms-1``.
    """

    n_arms = state.config.n_arms
    if isinstance(position, bool) or not isinstance(position, (int, np.integer)) or not 0 <= position < n_arms:
        raise SequenceError(f"display position must be an integer in 0..{n_arms - 1}, got {position!r}")
    return state.arm_order.arm_at(state.game_index, int(position))


def generate_completion_code(rng: np.random.Generator, *, length: int = 8, prefix: str = "") -> str:
    """Draw a random alphanumeric completion code.

    Parameters
    ----------
    rng : numpy.random.Generator
        Random generator.
    length : int, optional
        Number of random characters.
    prefix : str, optional
        Fixed prefix prepended to the code.

    Returns
    -------
    str
        Completion code such as ``"EXP-7Q2K9D1A"`` for ``prefix="EXP-"``.
    """

    if length <= 0:
        raise ValueError("length must be > 0")
    indices = rng.integers(0, len(_COMPLETION_CODE_ALPHABET), size=length)
    return prefix + "".join(_COMPLETION_CODE_ALPHABET[int(index)] for index in indices)


def _enter(state: SessionState, phase: SequencePhase, *, trial_index: int | None = None) -> None:
    state.phase = phase
    state.phase_history.append(PhaseEntry(phase=phase, game_index=state.game_index, trial_index=trial_index))
    logger.debug("game %d trial %s -> %s", state.game_index, trial_index, phase.value)


def _add_points(total: float, outcome: float, precision: int) -> float:
    # Keep running totals on the outcome grid so exported values stay exact.
    return round(total + outcome, precision) + 0.0


__all__ = [
    "PhaseEntry",
    "SequencePhase",
    "SessionState",
    "TrialRecord",
    "TrialResult",
    "acknowledge_interstitial",
    "advance_trial",
    "arm_at_position",
    "generate_completion_code",
    "start_session",
]
