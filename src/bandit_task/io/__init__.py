"""I/O helpers for outcome-table and session-record files."""

from .tabular import (
    outcome_table_rows,
    read_arm_order_json,
    read_outcome_table_csv,
    write_arm_order_json,
    write_json_summary,
    write_outcome_table_csv,
    write_session_record_csv,
)

__all__ = [
    "outcome_table_rows",
    "read_arm_order_json",
    "read_outcome_table_csv",
    "write_arm_order_json",
    "write_json_summary",
    "write_outcome_table_csv",
    "write_session_record_csv",
]
