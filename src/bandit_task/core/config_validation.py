"""Shared helpers for strict declarative config validation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from bandit_task.errors import ConfigError


def validate_allowed_keys(
    mapping: Mapping[str, Any],
    *,
    field_name: str,
    allowed_keys: Iterable[str],
) -> None:
    """Validate that a mapping only contains allowed keys.

    Parameters
    ----------
    mapping : Mapping[str, Any]
        Configuration mapping to validate.
    field_name : str
        Human-readable path used in error messages.
    allowed_keys : Iterable[str]
        Allowed key names for ``mapping``.

    Raises
    ------
    ConfigError
        If unknown keys are present.
    """

    allowed = set(str(key) for key in allowed_keys)
    unknown = sorted(str(key) for key in mapping if str(key) not in allowed)
    if unknown:
        raise ConfigError(f"{field_name} has unknown keys: {unknown}")


def validate_required_keys(
    mapping: Mapping[str, Any],
    *,
    field_name: str,
    required_keys: Iterable[str],
) -> None:
    """Validate that required keys are present in a mapping.

    Parameters
    ----------
    mapping : Mapping[str, Any]
        Configuration mapping to validate.
    field_name : str
        Human-readable path used in error messages.
    required_keys : Iterable[str]
        Keys that must be present in ``mapping``.

    Raises
    ------
    ConfigError
        If required keys are missing.
    """

    required = set(str(key) for key in required_keys)
    missing = sorted(key for key in required if key not in mapping)
    if missing:
        raise ConfigError(f"{field_name} is missing required keys: {missing}")


def validate_table_shape(
    table: Any,
    *,
    field_name: str,
    n_rows: int,
    n_columns: int,
) -> tuple[tuple[Any, ...], ...]:
    """Validate a row-major table and return it as nested tuples.

    Parameters
    ----------
    table : Any
        Candidate table (sequence of row sequences).
    field_name : str
        Parameter or field name used in error messages.
    n_rows : int
        Required number of rows (games).
    n_columns : int
        Required number of columns (arms).

    Returns
    -------
    tuple[tuple[Any, ...], ...]
        Table rows as tuples.

    Raises
    ------
    ConfigError
        If the table is not a sequence of ``n_rows`` rows with ``n_columns``
        entries each.
    """

    if not _is_row_sequence(table):
        raise ConfigError("table must be a sequence of rows", parameter=field_name)
    if len(table) != n_rows:
        raise ConfigError(
            f"table has {len(table)} rows; expected {n_rows} (one per game)",
            parameter=field_name,
        )

    rows: list[tuple[Any, ...]] = []
    for game_index, row in enumerate(table):
        if not _is_row_sequence(row):
            raise ConfigError("table row must be a sequence", game=game_index, parameter=field_name)
        if len(row) != n_columns:
            raise ConfigError(
                f"table row has {len(row)} columns; expected {n_columns} (one per arm)",
                game=game_index,
                parameter=field_name,
            )
        rows.append(tuple(row))
    return tuple(rows)


def _is_row_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


__all__ = ["validate_allowed_keys", "validate_required_keys", "validate_table_shape"]
