"""Tests for session record export."""

from __future__ import annotations

import json

import pytest

from bandit_task.config import validate_config
from bandit_task.export import SESSION_COLUMNS, export_session_record, session_record_rows
from bandit_task.generation import ArmOrder, GeneratedOutcomes, OutcomeTable
from bandit_task.session import acknowledge_interstitial, advance_trial, start_session


def _played_session(*, finish: bool = True):
    """Play the two-game example task with fixed outcomes."""

    config = validate_config(
        {
            "trials_per_game": [2, 3],
            "n_arms": 2,
            "practice": True,
            "distributions": ["uniform", "normal"],
            "parameters": {
                "min": [[0, None], [0, None]],
                "max": [[1, None], [1, None]],
                "mean": [[None, 5], [None, 5]],
                "sd": [[None, 1], [None, 1]],
            },
        }
    )
    generated = GeneratedOutcomes(
        outcomes=OutcomeTable(
            values=(((0.1, 0.2), (5.0, 4.5)), ((0.3, 0.4, 0.5), (6.1, 3.9, 5.2))),
            precision=1,
        ),
        arm_order=ArmOrder(orders=((1, 0), (0, 1))),
    )
    state = start_session(config, generated, completion_code="ABC123")
    advance_trial(state, 0, response_time=1.25)
    advance_trial(state, 1, response_time=0.5)
    acknowledge_interstitial(state)
    advance_trial(state, 1)
    if finish:
        advance_trial(state, 1)
        advance_trial(state, 0)
    return state


def test_export_session_record_has_one_row_per_trial() -> None:
    """Export should list every trial plus session-level fields."""

    record = export_session_record(_played_session())

    assert record.n_trials == 5
    assert record.completed is True
    assert record.completion_code == "ABC123"
    assert record.arm_order == ((1, 0), (0, 1))
    assert record.total_points == pytest.approx(10.5)
    assert record.game_totals == {0: 4.6, 1: 10.5}


def test_session_record_rows_are_flat() -> None:
    """Rows should carry game, trial, selection, outcome and running total."""

    rows = session_record_rows(export_session_record(_played_session()))

    assert [tuple(row) for row in rows] == [SESSION_COLUMNS] * 5
    assert rows[0] == {
        "game_index": 0,
        "trial_index": 0,
        "practice": True,
        "selection": 0,
        "display_position": 1,
        "outcome": 0.1,
        "points_cum": 0.1,
        "response_time": 1.25,
        "arm_order_json": "[1, 0]",
    }
    assert rows[2]["game_index"] == 1
    assert rows[2]["points_cum"] == 6.1
    assert rows[2]["response_time"] == ""
    assert json.loads(rows[4]["arm_order_json"]) == [0, 1]


def test_incomplete_session_can_be_exported() -> None:
    """Partial sessions should export with ``completed=False``."""

    record = export_session_record(_played_session(finish=False))

    assert record.completed is False
    assert record.n_trials == 3
    assert record.summary()["completed"] is False
    assert record.summary()["game_totals"] == {"0": 4.6, "1": 6.1}
