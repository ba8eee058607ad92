"""Column lookup helpers shared by the reshape, survey and statistics tools."""

from typing import Iterable, List, Optional

import pandas as pd

from longorwide.errors import ColumnConflictError, ColumnNotFoundError


def _require_columns(df: pd.DataFrame, columns: Iterable, role: str) -> List:
    """Return `columns` as a list, raising ColumnNotFoundError if any is absent from `df`.

    A single string is one column name, not a sequence of characters.
    """
    columns = [columns] if isinstance(columns, str) else list(columns)
    available = set(df.columns)
    missing = [col for col in columns if col not in available]
    if missing:
        raise ColumnNotFoundError(role, missing, df.columns)
    return columns


def _require_column(df: pd.DataFrame, column, role: str):
    """Single-column variant of _require_columns."""
    return _require_columns(df, [column], role)[0]


def _optional_column(df: pd.DataFrame, column, role: str) -> Optional[str]:
    if column is None:
        return None
    return _require_column(df, column, role)


def _require_unique(columns: List, role: str) -> None:
    seen = set()
    duplicated = []
    for col in columns:
        if col in seen and col not in duplicated:
            duplicated.append(col)
        seen.add(col)
    if duplicated:
        raise ColumnConflictError(f"Duplicate names in {role}: {duplicated}")
