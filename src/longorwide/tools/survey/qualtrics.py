"""
Survey export cleaning and item scoring.

Qualtrics CSV exports carry extra rows under the header (import ids, full
question text) and therefore read every response column as text.
prepare_qualtrics drops those rows, renames columns and turns response columns
back into numbers. reverse_score recodes negatively-worded scale items.
"""

from typing import Dict, List, Optional

import pandas as pd

from longorwide.constants import DEFAULT_HEADER_ROWS
from longorwide.errors import ColumnConflictError
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _require_columns
from longorwide.tools.core.serialization import _records


def _is_text(col: pd.Series) -> bool:
    return pd.api.types.is_object_dtype(col) or pd.api.types.is_string_dtype(col)


def _coerce_numeric(col: pd.Series) -> pd.Series:
    """Numeric version of a text column if any cell parses (or all are missing), else the column unchanged."""
    stripped = col.map(lambda v: v.strip() if isinstance(v, str) else v)
    numeric = pd.to_numeric(stripped, errors="coerce")
    if numeric.notna().any() or col.isna().all():
        return numeric
    return col


def prepare_qualtrics(
    df: pd.DataFrame,
    remove_first_rows: int = DEFAULT_HEADER_ROWS,
    column_mapping: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    Clean a Qualtrics export: drop header rows, rename columns, convert responses to numbers.

    Every text column is converted to numeric if at least one of its non-missing
    cells parses as a number, or if it is entirely missing. Cells that do not parse
    in a converted column become missing. Columns with no parseable cell stay text.

    Args:
        df: Table read from a Qualtrics CSV export
        remove_first_rows: Number of rows under the header to drop (default: 2, the
            import id and question text rows). Must be between 0 and len(df).
        column_mapping: Optional {old_name: new_name} renames. Entries whose old name
            is not a column are ignored.

    Returns:
        New DataFrame with a fresh 0..n-1 index

    Raises:
        ValueError: If remove_first_rows is negative or larger than the row count
        ColumnConflictError: If a rename targets a name held by another column

    Example:
        >>> raw = pd.DataFrame({"Q1": ["ImportId", "Question", "1", "2"]})
        >>> prepare_qualtrics(raw, remove_first_rows=2)["Q1"].tolist()
        [1, 2]
    """
    if remove_first_rows < 0 or remove_first_rows > len(df):
        raise ValueError(
            f"remove_first_rows must be between 0 and the number of rows ({len(df)}). "
            f"Got: {remove_first_rows}"
        )

    data = df.iloc[remove_first_rows:].reset_index(drop=True)

    if column_mapping:
        renames = {old: new for old, new in column_mapping.items() if old in data.columns and old != new}
        renamed_columns = [renames.get(col, col) for col in data.columns]
        clashing = sorted({str(col) for col in renamed_columns if renamed_columns.count(col) > 1})
        if clashing:
            raise ColumnConflictError(f"Renaming would create duplicate column names: {clashing}")
        data = data.rename(columns=renames)

    for col in data.columns:
        if _is_text(data[col]):
            data[col] = _coerce_numeric(data[col])

    return data


def reverse_score(df: pd.DataFrame, items: List[str], min_value: float, max_value: float) -> pd.DataFrame:
    """
    Reverse score scale items: each cell x becomes min_value + max_value - x.

    Only the listed columns change; the input table is left untouched. Values
    outside [min_value, max_value] are not checked. Applying the same call twice
    restores the original values.

    Args:
        df: Table containing the items
        items: Item columns to reverse
        min_value: Lowest point of the response scale
        max_value: Highest point of the response scale

    Returns:
        Copy of df with the item columns replaced

    Raises:
        ColumnNotFoundError: If an item column is absent

    Example:
        >>> data = pd.DataFrame({"item1": [5, 4, 3], "item2": [2, 3, 4]})
        >>> reverse_score(data, ["item2"], 1, 5)["item2"].tolist()
        [4, 3, 2]
    """
    items = _require_columns(df, items, "items")

    scored = df.copy()
    for item in items:
        scored[item] = min_value + max_value - scored[item]
    return scored


@loggable
def prepare_qualtrics_dataset(
    input_filename: str,
    project_manifest_path: str,
    output_filename: str,
    remove_first_rows: int = DEFAULT_HEADER_ROWS,
    column_mapping: Optional[Dict[str, str]] = None,
    explanation: str = "Cleaned Qualtrics export",
) -> dict:
    """
    Clean a stored Qualtrics export and store the result.

    See prepare_qualtrics for the cleaning rules. Store the raw export with
    store_csv_as_dataset first; the header rows are still in the data at that point.

    Returns:
        Dictionary containing:
            - output_filename: Stored cleaned dataset
            - n_rows_before / n_rows_after: Row counts
            - numeric_columns: Columns that are numeric after cleaning
            - text_columns: Columns left as text
            - preview: First 5 rows
    """
    df = _load_resource(project_manifest_path, input_filename)
    cleaned = prepare_qualtrics(df, remove_first_rows, column_mapping)

    output_filename = _store_resource(cleaned, project_manifest_path, output_filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "n_rows_before": len(df),
        "n_rows_after": len(cleaned),
        "numeric_columns": [str(c) for c in cleaned.columns if pd.api.types.is_numeric_dtype(cleaned[c])],
        "text_columns": [str(c) for c in cleaned.columns if _is_text(cleaned[c])],
        "preview": _records(cleaned.head(5)),
    }


@loggable
def reverse_score_dataset(
    input_filename: str,
    project_manifest_path: str,
    items: List[str],
    min_value: float,
    max_value: float,
    output_filename: str,
    explanation: str = "Dataset with reverse-scored items",
) -> dict:
    """
    Reverse score items of a stored dataset and store the result.

    Returns:
        Dictionary containing:
            - output_filename: Stored dataset with reversed items
            - items: Columns that were reversed
            - scale: [min_value, max_value]
            - preview: First 5 rows
    """
    df = _load_resource(project_manifest_path, input_filename)
    scored = reverse_score(df, items, min_value, max_value)

    output_filename = _store_resource(scored, project_manifest_path, output_filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "items": list(items),
        "scale": [min_value, max_value],
        "preview": _records(scored.head(5)),
    }


def get_all_survey_tools():
    """Return a list of all survey cleaning and scoring tools."""
    return [
        prepare_qualtrics_dataset,
        reverse_score_dataset,
    ]
