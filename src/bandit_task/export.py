"""Flat session records for persistence collaborators.

The exported record is the unit handed to whatever stores participant data
(local CSV, cloud storage, email). This module defines its shape only; file
writers live in :mod:`bandit_task.io`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from bandit_task.session import SessionState, TrialRecord

SESSION_COLUMNS: tuple[str, ...] = (
    "game_index",
    "trial_index",
    "practice",
    "selection",
    "display_position",
    "outcome",
    "points_cum",
    "response_time",
    "arm_order_json",
)


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Read-only snapshot of a session for export.

    Parameters
    ----------
    trials : tuple[TrialRecord, ...]
        One row per revealed trial, in play order.
    arm_order : tuple[tuple[int, ...], ...]
        Display order per game.
    total_points : float
        Points summed over scoring (non-practice) games.
    game_totals : dict[int, float]
        Final running total per game played.
    completed : bool
        Whether the session reached ``ALL_GAMES_COMPLETE``.
    completion_code : str | None
        Code shown to the participant, if any.
    """

    trials: tuple[TrialRecord, ...]
    arm_order: tuple[tuple[int, ...], ...]
    total_points: float
    game_totals: dict[int, float]
    completed: bool
    completion_code: str | None = None

    @property
    def n_trials(self) -> int:
        return len(self.trials)

    def summary(self) -> dict[str, Any]:
        """Session-level fields as a JSON-ready mapping."""

        return {
            "n_trials": self.n_trials,
            "total_points": float(self.total_points),
            "game_totals": {str(game): float(points) for game, points in sorted(self.game_totals.items())},
            "arm_order": [list(order) for order in self.arm_order],
            "completed": bool(self.completed),
            "completion_code": self.completion_code,
        }


def export_session_record(state: SessionState) -> SessionRecord:
    """Snapshot a session into a :class:`SessionRecord`.

    Parameters
    ----------
    state : SessionState
        Session to export. Incomplete sessions are exported with
        ``completed=False`` so partial data can still be saved.

    Returns
    -------
    SessionRecord
        Immutable record.
    """

    return SessionRecord(
        trials=tuple(state.records),
        arm_order=tuple(state.arm_order.orders),
        total_points=float(state.total_points),
        game_totals=state.game_totals,
        completed=state.is_complete,
        completion_code=state.completion_code,
    )


def session_record_rows(record: SessionRecord) -> list[dict[str, Any]]:
    """Flatten a session record into CSV-ready row mappings.

    Parameters
    ----------
    record : SessionRecord
        Exported session.

    Returns
    -------
    list[dict[str, Any]]
        One mapping per trial keyed by :data:`SESSION_COLUMNS`.
    """

    return [
        {
            "game_index": int(trial.game_index),
            "trial_index": int(trial.trial_index),
            "practice": bool(trial.practice),
            "selection": int(trial.selection),
            "display_position": int(trial.display_position),
            "outcome": float(trial.outcome),
            "points_cum": float(trial.points_cum),
            "response_time": "" if trial.response_time is None else float(trial.response_time),
            "arm_order_json": json.dumps(list(record.arm_order[trial.game_index])),
        }
        for trial in record.trials
    ]


__all__ = ["SESSION_COLUMNS", "SessionRecord", "export_session_record", "session_record_rows"]
