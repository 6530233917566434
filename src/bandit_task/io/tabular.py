"""Tabular CSV/JSON I/O for outcome tables and session records.

These helpers are the local-file boundary of the package. Outcome tables are
written in long format so a fixed table can be generated once and loaded for
every participant, guaranteeing identical stimuli across sessions.
"""

from __future__ import annotations

import csv
import json
import math
from collections import defaultdict
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from bandit_task.config import ValidatedBanditConfig
from bandit_task.export import SESSION_COLUMNS, SessionRecord, session_record_rows
from bandit_task.generation import ArmOrder, OutcomeTable

_OUTCOME_COLUMNS = (
    "game_index",
    "arm_index",
    "trial_index",
    "outcome",
    "precision",
)


def outcome_table_rows(table: OutcomeTable) -> list[dict[str, Any]]:
    """Flatten an outcome table into long-format row mappings.

    Parameters
    ----------
    table : OutcomeTable
        Table to flatten.

    Returns
    -------
    list[dict[str, Any]]
        One mapping per ``(game, arm, trial)`` cell, game-major.
    """

    rows: list[dict[str, Any]] = []
    for game_index, game in enumerate(table.values):
        for arm_index, arm in enumerate(game):
            for trial_index, value in enumerate(arm):
                rows.append(
                    {
                        "game_index": game_index,
                        "arm_index": arm_index,
                        "trial_index": trial_index,
                        "outcome": float(value),
                        "precision": int(table.precision),
                    }
                )
    return rows


def write_outcome_table_csv(table: OutcomeTable, path: str | Path) -> Path:
    """Write an outcome table to CSV.

    Parameters
    ----------
    table : OutcomeTable
        Table to write.
    path : str | pathlib.Path
        Destination CSV path.

    Returns
    -------
    pathlib.Path
        Output CSV path.
    """

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(_OUTCOME_COLUMNS))
        writer.writeheader()
        writer.writerows(outcome_table_rows(table))
    return output_path


def read_outcome_table_csv(
    path: str | Path,
    *,
    config: ValidatedBanditConfig | None = None,
) -> OutcomeTable:
    """Read an outcome table written by :func:`write_outcome_table_csv`.

    Parameters
    ----------
    path : str | pathlib.Path
        Input CSV path.
    config : ValidatedBanditConfig | None, optional
        When given, the loaded table must match its games, arms and trial
        counts.

    Returns
    -------
    OutcomeTable
        Loaded table.

    Raises
    ------
    ValueError
        If columns are missing, indices are not contiguous from zero, the
        precision column is inconsistent, or an outcome is not finite or not
        rounded to the declared precision.
    ConfigError
        If ``config`` is given and the table shape differs from it.
    """

    input_path = Path(path)
    cells: dict[int, dict[int, dict[int, float]]] = defaultdict(lambda: defaultdict(dict))
    precisions: set[int] = set()
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        _require_columns(reader.fieldnames, required=_OUTCOME_COLUMNS)
        for index, raw in enumerate(reader):
            game_index = _coerce_int(raw.get("game_index"), field_name="game_index", row_index=index)
            arm_index = _coerce_int(raw.get("arm_index"), field_name="arm_index", row_index=index)
            trial_index = _coerce_int(raw.get("trial_index"), field_name="trial_index", row_index=index)
            if trial_index in cells[game_index][arm_index]:
                raise ValueError(
                    f"row {index}: duplicate cell game={game_index}, arm={arm_index}, trial={trial_index}"
                )
            cells[game_index][arm_index][trial_index] = _coerce_float(
                raw.get("outcome"),
                field_name="outcome",
                row_index=index,
            )
            precisions.add(_coerce_int(raw.get("precision"), field_name="precision", row_index=index))

    if not cells:
        raise ValueError("outcome table CSV contains no rows")
    if len(precisions) != 1:
        raise ValueError(f"outcome table CSV mixes precisions: {sorted(precisions)}")

    games: list[tuple[tuple[float, ...], ...]] = []
    for game_index in _contiguous_keys(cells, label="game_index"):
        arms = cells[game_index]
        games.append(
            tuple(
                tuple(arms[arm_index][trial] for trial in _contiguous_keys(arms[arm_index], label="trial_index"))
                for arm_index in _contiguous_keys(arms, label="arm_index")
            )
        )

    table = OutcomeTable(values=tuple(games), precision=precisions.pop())
    if config is not None:
        table.check_matches(config)
    return table


def write_arm_order_json(arm_order: ArmOrder, path: str | Path) -> Path:
    """Write per-game arm display order as a JSON list of lists."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps([list(order) for order in arm_order.orders], indent=2), encoding="utf-8")
    return output_path


def read_arm_order_json(path: str | Path) -> ArmOrder:
    """Read arm display order written by :func:`write_arm_order_json`."""

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list) or not all(isinstance(row, list) for row in raw):
        raise ValueError("arm order JSON must be a list of lists")
    return ArmOrder(orders=tuple(tuple(int(arm) for arm in row) for row in raw))


def write_session_record_csv(record: SessionRecord, path: str | Path) -> Path:
    """Write one row per trial of a session record to CSV.

    Parameters
    ----------
    record : SessionRecord
        Exported session.
    path : str | pathlib.Path
        Destination CSV path.

    Returns
    -------
    pathlib.Path
        Output CSV path.

    Raises
    ------
    ValueError
        If the record has no trials.
    """

    rows = session_record_rows(record)
    if not rows:
        raise ValueError("session record must include at least one trial")

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(SESSION_COLUMNS))
        writer.writeheader()
        writer.writerows(rows)
    return output_path


def write_json_summary(payload: dict[str, Any], path: str | Path) -> Path:
    """Write a JSON summary payload to disk."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    return output_path


def _contiguous_keys(mapping: dict[int, Any], *, label: str) -> range:
    """Require integer keys ``0..n-1`` and return them in order."""

    expected = range(len(mapping))
    if sorted(mapping) != list(expected):
        raise ValueError(f"{label} values must be contiguous from 0, got {sorted(mapping)}")
    return expected


def _coerce_int(raw: Any, *, field_name: str, row_index: int) -> int:
    """Coerce one integer field with row-index context."""

    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise ValueError(f"row {row_index}: {field_name} must be an integer")
    return int(text)


def _coerce_float(raw: Any, *, field_name: str, row_index: int) -> float:
    """Coerce one numeric field with row-index context."""

    text = str(raw).strip() if raw is not None else ""
    if not text:
        raise ValueError(f"row {row_index}: {field_name} must be a number")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"row {row_index}: {field_name} must be finite, got {text!r}")
    return value


def _require_columns(fieldnames: Sequence[str] | None, *, required: tuple[str, ...]) -> None:
    """Require all expected columns to exist in CSV header."""

    if fieldnames is None:
        raise ValueError("CSV file must include a header row")
    missing = [name for name in required if name not in set(fieldnames)]
    if missing:
        raise ValueError(f"CSV file missing required columns: {missing}")


__all__ = [
    "outcome_table_rows",
    "read_arm_order_json",
    "read_outcome_table_csv",
    "write_arm_order_json",
    "write_json_summary",
    "write_outcome_table_csv",
    "write_session_record_csv",
]
