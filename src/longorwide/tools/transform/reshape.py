"""
Wide/long reshape engine.

Wide format: one row per subject, one column per measurement.
Long format: one row per subject x measurement, with the measurement's name in
one column and its value in another.

wide_to_long and long_to_wide are inverses of each other: for a table whose id
columns form a true key,

    long_to_wide(wide_to_long(df, id_cols, value_cols, "name", "value"),
                 id_cols, "name", "value")

reproduces df[id_cols + value_cols] with the same row and column order.

The *_dataset functions at the bottom are the same operations on datasets held
in the project resource store.
"""

import warnings
from typing import List

import numpy as np
import pandas as pd

from longorwide.constants import DEFAULT_NAMES_TO, DEFAULT_VALUES_TO, MISSING_NAME_LABEL
from longorwide.errors import ColumnConflictError, DuplicateKeyWarning
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _require_column, _require_columns, _require_unique
from longorwide.tools.core.serialization import _records


def wide_to_long(
    df: pd.DataFrame,
    id_cols: List[str],
    value_cols: List[str],
    names_to: str = DEFAULT_NAMES_TO,
    values_to: str = DEFAULT_VALUES_TO,
) -> pd.DataFrame:
    """
    Convert a table from wide format (one row per subject) to long format.

    Each input row produces one output row per value column, in the order the
    value columns are given. The output holds the id columns (original order),
    a `names_to` column with the value column's name and a `values_to` column
    with its cell. Columns that are neither id nor value columns are dropped.

    Args:
        df: Table in wide format
        id_cols: Columns identifying each subject (may be empty)
        value_cols: Columns to stack into name/value pairs
        names_to: Name of the new column holding the former column names
        values_to: Name of the new column holding the values

    Returns:
        New DataFrame with len(df) * len(value_cols) rows

    Raises:
        ColumnNotFoundError: If an id column (checked first) or a value column is absent
        ColumnConflictError: If id and value columns overlap, either list repeats a
            name, or names_to/values_to clash with each other or an id column
        ValueError: If value_cols is empty

    Example:
        >>> wide = pd.DataFrame({"id": [1, 2, 3], "time1": [10, 12, 11], "time2": [15, 14, 16]})
        >>> wide_to_long(wide, ["id"], ["time1", "time2"], "timepoint", "score").head(2)
           id timepoint  score
        0   1     time1     10
        1   1     time2     15
    """
    id_cols = _require_columns(df, id_cols, "id_cols")
    value_cols = _require_columns(df, value_cols, "value_cols")

    if not value_cols:
        raise ValueError("value_cols must name at least one column to pivot")

    _require_unique(id_cols, "id_cols")
    _require_unique(value_cols, "value_cols")

    overlap = [col for col in value_cols if col in id_cols]
    if overlap:
        raise ColumnConflictError(f"Columns cannot be both id_cols and value_cols: {overlap}")
    if names_to == values_to:
        raise ColumnConflictError(f"names_to and values_to must differ, both are '{names_to}'")
    clashing = [label for label in (names_to, values_to) if label in id_cols]
    if clashing:
        raise ColumnConflictError(f"New column name(s) {clashing} already used by id_cols")

    # Positional index so the stable sort below restores input row order
    wide = df[id_cols + value_cols].reset_index(drop=True)

    long_df = wide.melt(
        id_vars=id_cols,
        value_vars=value_cols,
        var_name=names_to,
        value_name=values_to,
        ignore_index=False,
    )

    # melt emits value-column-major order; regroup by input row, keeping value_cols order within a row
    return long_df.sort_index(kind="stable").reset_index(drop=True)


def long_to_wide(
    df: pd.DataFrame,
    id_cols: List[str],
    names_from: str,
    values_from: str,
) -> pd.DataFrame:
    """
    Convert a table from long format (one row per measurement) to wide format.

    Rows are grouped by the tuple of id column values. Every distinct value seen in
    `names_from` (anywhere in the table) becomes a column holding the matching
    `values_from` cell of each group, or a missing value when the group has no row
    for that name.

    Output columns are id_cols (original order) then the new columns in order of
    first appearance of their name. Output rows follow the first appearance of each
    id tuple. Columns not named in the call are dropped.

    Args:
        df: Table in long format
        id_cols: Columns identifying each subject; an empty list collapses the table to one row
        names_from: Column whose values become the new column names
        values_from: Column whose values fill the new columns

    Returns:
        New DataFrame with one row per distinct id tuple

    Raises:
        ColumnNotFoundError: If an id column, then names_from, then values_from is absent
        ColumnConflictError: If names_from/values_from coincide or are id columns, or a
            name value equals an id column name

    Warns:
        DuplicateKeyWarning: If an (id tuple, name) pair occurs on several rows; the
            last occurrence is kept

    Notes:
        Missing cells in `names_from` are collected under a column named "NA".
    """
    id_cols = _require_columns(df, id_cols, "id_cols")
    names_from = _require_column(df, names_from, "names_from column")
    values_from = _require_column(df, values_from, "values_from column")

    _require_unique(id_cols, "id_cols")
    if names_from == values_from:
        raise ColumnConflictError(f"names_from and values_from must be different columns, both are '{names_from}'")
    in_ids = [col for col in (names_from, values_from) if col in id_cols]
    if in_ids:
        raise ColumnConflictError(f"Column(s) {in_ids} cannot be both id_cols and names_from/values_from")

    if df.empty:
        return df[id_cols].reset_index(drop=True)

    names = df[names_from]
    if names.isna().any():
        names = names.astype(object).where(names.notna(), MISSING_NAME_LABEL)
    name_codes, new_columns = pd.factorize(names)
    new_columns = list(new_columns)

    clashing = [name for name in new_columns if name in id_cols]
    if clashing:
        raise ColumnConflictError(f"Values of '{names_from}' collide with id_cols: {clashing}")

    # Group numbers follow first appearance of each id tuple
    if id_cols:
        row_codes = df.groupby(id_cols, sort=False, dropna=False).ngroup().to_numpy()
    else:
        row_codes = np.zeros(len(df), dtype=np.int64)
    first_rows = pd.Series(row_codes).drop_duplicates().index
    n_groups = len(first_rows)

    cells = pd.DataFrame({
        "row": row_codes,
        "name": name_codes,
        "value": df[values_from].to_numpy(),
    })
    duplicated = cells.duplicated(subset=["row", "name"], keep="last")
    if duplicated.any():
        warnings.warn(
            f"{int(duplicated.sum())} row(s) share an id/name combination with a later row; "
            f"keeping the last value for each combination of {id_cols} and '{names_from}'",
            DuplicateKeyWarning,
            stacklevel=2,
        )
        cells = cells[~duplicated]

    grid = (
        cells.pivot(index="row", columns="name", values="value")
        .reindex(index=range(n_groups), columns=range(len(new_columns)))
    )
    grid.columns = pd.Index(new_columns)
    grid = grid.reset_index(drop=True).infer_objects()

    id_part = df.iloc[first_rows][id_cols].reset_index(drop=True)
    return pd.concat([id_part, grid], axis=1)


@loggable
def wide_to_long_dataset(
    input_filename: str,
    project_manifest_path: str,
    id_cols: List[str],
    value_cols: List[str],
    output_filename: str,
    names_to: str = DEFAULT_NAMES_TO,
    values_to: str = DEFAULT_VALUES_TO,
    explanation: str = "Dataset reshaped from wide to long format",
) -> dict:
    """
    Reshape a stored dataset from wide to long format and store the result.

    See wide_to_long for the reshape rules.

    Returns:
        Dictionary containing:
            - output_filename: Stored long-format dataset
            - n_rows_before / n_rows_after: Row counts of input and output
            - columns: Output column names
            - preview: First 5 output rows
    """
    df = _load_resource(project_manifest_path, input_filename)
    long_df = wide_to_long(df, id_cols, value_cols, names_to, values_to)

    output_filename = _store_resource(long_df, project_manifest_path, output_filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "n_rows_before": len(df),
        "n_rows_after": len(long_df),
        "columns": list(long_df.columns),
        "preview": _records(long_df.head(5)),
    }


@loggable
def long_to_wide_dataset(
    input_filename: str,
    project_manifest_path: str,
    id_cols: List[str],
    names_from: str,
    values_from: str,
    output_filename: str,
    explanation: str = "Dataset reshaped from long to wide format",
) -> dict:
    """
    Reshape a stored dataset from long to wide format and store the result.

    See long_to_wide for the reshape rules, including the last-wins policy for
    duplicated id/name rows.

    Returns:
        Dictionary containing:
            - output_filename: Stored wide-format dataset
            - n_rows_before / n_rows_after: Row counts of input and output
            - columns: Output column names
            - preview: First 5 output rows
    """
    df = _load_resource(project_manifest_path, input_filename)
    wide_df = long_to_wide(df, id_cols, names_from, values_from)

    output_filename = _store_resource(wide_df, project_manifest_path, output_filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "n_rows_before": len(df),
        "n_rows_after": len(wide_df),
        "columns": [str(col) for col in wide_df.columns],
        "preview": _records(wide_df.head(5)),
    }


def get_all_reshape_tools():
    """Return a list of all dataset-level reshape tools."""
    return [
        wide_to_long_dataset,
        long_to_wide_dataset,
    ]
