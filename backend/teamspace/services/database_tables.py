"""
Cell validation and cleanup for database rows.

Row values are a JSON object keyed by column id. Every write goes through
merge_row_values(), which checks each cell against its column type:

  text     any string
  number   int or float (booleans are rejected)
  boolean  true / false
  date     ISO 8601 date or datetime string
  select   id of one of the column's options

Invalid cells raise ValueError, which the API turns into a 400.
"""

import logging
from datetime import date, datetime
from typing import Any

from teamspace.models.workspace_database import DatabaseColumn, DatabaseRow, WorkspaceDatabase

logger = logging.getLogger(__name__)


def _check_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    for parse in (date.fromisoformat, datetime.fromisoformat):
        try:
            parse(value)
        except ValueError:
            continue
        return True
    return False


def check_cell(column: DatabaseColumn, value: Any) -> None:
    if column.type == "text":
        ok = isinstance(value, str)
    elif column.type == "number":
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif column.type == "boolean":
        ok = isinstance(value, bool)
    elif column.type == "date":
        ok = _check_date(value)
    elif column.type == "select":
        ok = isinstance(value, str) and any(option.id == value for option in column.options)
    else:
        ok = False
    if not ok:
        raise ValueError(f"Invalid value for {column.type} column {column.name!r}")


def merge_row_values(database: WorkspaceDatabase, current: dict, changes: dict) -> dict:
    """Return a new values dict with changes applied. None clears a cell."""
    columns = {column.id: column for column in database.columns}
    merged = dict(current)
    for column_id, value in changes.items():
        column = columns.get(column_id)
        if column is None:
            raise ValueError(f"Unknown column: {column_id}")
        if value is None:
            merged.pop(column_id, None)
            continue
        check_cell(column, value)
        merged[column_id] = value
    return merged


def clear_column(database: WorkspaceDatabase, column_id: str) -> int:
    """Drop a column's cells from every row. Returns the number of rows changed."""
    changed = 0
    for row in database.rows:
        if column_id in row.values:
            row.values = {key: value for key, value in row.values.items() if key != column_id}
            changed += 1
    if changed:
        logger.info("Cleared column %s in %d rows of database %s", column_id, changed, database.id)
    return changed


def clear_option(database: WorkspaceDatabase, column_id: str, option_id: str) -> int:
    """Clear cells of a select column that point at option_id."""
    changed = 0
    for row in database.rows:
        if row.values.get(column_id) == option_id:
            row.values = {key: value for key, value in row.values.items() if key != column_id}
            changed += 1
    return changed


def next_order(items) -> int:
    return max((item.order for item in items), default=0) + 1


def new_row(database: WorkspaceDatabase, values: dict) -> DatabaseRow:
    return DatabaseRow(database_id=database.id, values=merge_row_values(database, {}, values))
