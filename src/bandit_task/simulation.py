"""Simulated participants for exercising a full session without a UI.

A simulation drives the trial sequencer exactly as a host UI would: one
:func:`~bandit_task.session.advance_trial` call per choice and one
:func:`~bandit_task.session.acknowledge_interstitial` call per end-of-game
screen.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from bandit_task.config import ValidatedBanditConfig
from bandit_task.export import SessionRecord, export_session_record
from bandit_task.generation import GeneratedOutcomes
from bandit_task.session import (
    SequencePhase,
    SessionState,
    TrialRecord,
    acknowledge_interstitial,
    advance_trial,
    generate_completion_code,
    start_session,
)


@runtime_checkable
class Chooser(Protocol):
    """Protocol for simulated participants."""

    def start_game(self, game_index: int, *, n_arms: int) -> None:
        """Reset per-game state before the first trial of a game."""

    def choose(self, state: SessionState, *, rng: np.random.Generator) -> int:
        """Return the logical arm to select on the current trial."""

    def observe(self, record: TrialRecord) -> None:
        """Receive the revealed trial."""


class UniformRandomChooser:
    """Select every arm with equal probability."""

    def start_game(self, game_index: int, *, n_arms: int) -> None:
        del game_index, n_arms

    def choose(self, state: SessionState, *, rng: np.random.Generator) -> int:
        return int(rng.integers(0, state.config.n_arms))

    def observe(self, record: TrialRecord) -> None:
        del record


class FixedSequenceChooser:
    """Follow a fixed arm sequence across the whole session.

    Parameters
    ----------
    sequence : Sequence[int]
        Arms selected on consecutive trials, across game boundaries.
    fallback : {"error", "repeat_last"}, optional
        Behavior once the sequence is exhausted.

    Raises
    ------
    ValueError
        If sequence is empty or fallback is unsupported.
    """

    def __init__(self, sequence: Sequence[int], *, fallback: str = "error") -> None:
        if len(sequence) == 0:
            raise ValueError("sequence must include at least one arm")
        if fallback not in {"error", "repeat_last"}:
            raise ValueError("fallback must be 'error' or 'repeat_last'")

        self._sequence = tuple(int(arm) for arm in sequence)
        self._fallback = fallback
        self._position = 0

    def start_game(self, game_index: int, *, n_arms: int) -> None:
        del game_index, n_arms

    def choose(self, state: SessionState, *, rng: np.random.Generator) -> int:
        del state, rng
        if self._position < len(self._sequence):
            arm = self._sequence[self._position]
        elif self._fallback == "repeat_last":
            arm = self._sequence[-1]
        else:
            raise IndexError(f"fixed sequence exhausted after {len(self._sequence)} choices")
        self._position += 1
        return arm

    def observe(self, record: TrialRecord) -> None:
        del record


class EpsilonGreedyChooser:
    """Pick the arm with the best observed mean outcome in the current game.

    Unsampled arms are tried first. With probability ``epsilon`` a uniformly
    random arm is chosen instead.

    Parameters
    ----------
    epsilon : float, optional
        Exploration probability in ``[0, 1]``.
    """

    def __init__(self, *, epsilon: float = 0.1) -> None:
        if epsilon < 0.0 or epsilon > 1.0:
            raise ValueError("epsilon must be in [0, 1]")
        self._epsilon = float(epsilon)
        self._sums: list[float] = []
        self._counts: list[int] = []

    def start_game(self, game_index: int, *, n_arms: int) -> None:
        del game_index
        self._sums = [0.0] * n_arms
        self._counts = [0] * n_arms

    def choose(self, state: SessionState, *, rng: np.random.Generator) -> int:
        n_arms = state.config.n_arms
        if rng.random() < self._epsilon:
            return int(rng.integers(0, n_arms))

        unsampled = [arm for arm in range(n_arms) if self._counts[arm] == 0]
        if unsampled:
            return unsampled[0]
        means = [self._sums[arm] / self._counts[arm] for arm in range(n_arms)]
        return int(np.argmax(means))

    def observe(self, record: TrialRecord) -> None:
        self._sums[record.selection] += record.outcome
        self._counts[record.selection] += 1


def simulate_session(
    config: ValidatedBanditConfig,
    generated: GeneratedOutcomes,
    chooser: Chooser,
    *,
    seed: int | None = None,
    completion_code_prefix: str = "",
) -> SessionRecord:
    """Play a full session with a simulated participant.

    Parameters
    ----------
    config : ValidatedBanditConfig
        Validated task configuration.
    generated : GeneratedOutcomes
        Outcomes and arm order for the session.
    chooser : Chooser
        Simulated participant.
    seed : int | None, optional
        Seed for choice randomness, response times and the completion code.
        Independent of the outcome seed.
    completion_code_prefix : str, optional
        Prefix of the generated completion code.

    Returns
    -------
    SessionRecord
        Exported record of the completed session.
    """

    rng = np.random.default_rng(seed)
    state = start_session(
        config,
        generated,
        completion_code=generate_completion_code(rng, prefix=completion_code_prefix),
    )

    chooser.start_game(0, n_arms=config.n_arms)
    while not state.is_complete:
        if state.phase in {SequencePhase.GAME_COMPLETE, SequencePhase.PRACTICE_COMPLETE}:
            acknowledge_interstitial(state)
            chooser.start_game(state.game_index, n_arms=config.n_arms)
            continue

        arm = chooser.choose(state, rng=rng)
        # Response times in seconds, log-normal around one second.
        response_time = round(float(rng.lognormal(mean=0.0, sigma=0.5)), 3)
        result = advance_trial(state, arm, response_time=response_time)
        chooser.observe(result.record)

    return export_session_record(state)


__all__ = [
    "Chooser",
    "EpsilonGreedyChooser",
    "FixedSequenceChooser",
    "UniformRandomChooser",
    "simulate_session",
]
