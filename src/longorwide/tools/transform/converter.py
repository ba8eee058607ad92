"""
Converter workflow: free-text column lists in, reshaped table and reproducible
code out.

A client (chat assistant, form, notebook widget) collects column names as
comma-separated text. The functions here parse that text, run the reshape and
return the table together with a Python snippet that repeats the exact call, so
the conversion can be pasted into an analysis script.
"""

from typing import List, NamedTuple

import pandas as pd

from longorwide.constants import DEFAULT_NAMES_TO, DEFAULT_VALUES_TO
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.serialization import _records
from longorwide.tools.transform.reshape import wide_to_long, long_to_wide


class ConversionResult(NamedTuple):
    table: pd.DataFrame
    code: str


def parse_column_list(text: str) -> List[str]:
    """
    Split comma-separated column names, trimming whitespace around each name.

    Blank text gives an empty list. Empty entries between commas are kept as ""
    so that column validation reports them instead of silently skipping them.

    Example:
        >>> parse_column_list(" id, subject ")
        ['id', 'subject']
        >>> parse_column_list("a,,b")
        ['a', '', 'b']
    """
    if text is None or not text.strip():
        return []
    return [part.strip() for part in text.split(",")]


def _py_list(names: List[str]) -> str:
    return "[" + ", ".join(repr(name) for name in names) + "]"


def wide_to_long_snippet(id_cols: List[str], value_cols: List[str], names_to: str, values_to: str) -> str:
    return (
        "from longorwide import wide_to_long\n"
        "\n"
        "# Convert wide to long\n"
        "long_data = wide_to_long(\n"
        "    wide_data,\n"
        f"    id_cols={_py_list(id_cols)},\n"
        f"    value_cols={_py_list(value_cols)},\n"
        f"    names_to={names_to!r},\n"
        f"    values_to={values_to!r},\n"
        ")\n"
    )


def long_to_wide_snippet(id_cols: List[str], names_from: str, values_from: str) -> str:
    return (
        "from longorwide import long_to_wide\n"
        "\n"
        "# Convert long to wide\n"
        "wide_data = long_to_wide(\n"
        "    long_data,\n"
        f"    id_cols={_py_list(id_cols)},\n"
        f"    names_from={names_from!r},\n"
        f"    values_from={values_from!r},\n"
        ")\n"
    )


def convert_wide_to_long(
    df: pd.DataFrame,
    id_cols_text: str,
    value_cols_text: str,
    names_to: str = DEFAULT_NAMES_TO,
    values_to: str = DEFAULT_VALUES_TO,
) -> ConversionResult:
    """Parse comma-separated column lists, run wide_to_long, and return the table with its code."""
    id_cols = parse_column_list(id_cols_text)
    value_cols = parse_column_list(value_cols_text)
    names_to = names_to.strip()
    values_to = values_to.strip()

    table = wide_to_long(df, id_cols, value_cols, names_to, values_to)
    return ConversionResult(table, wide_to_long_snippet(id_cols, value_cols, names_to, values_to))


def convert_long_to_wide(
    df: pd.DataFrame,
    id_cols_text: str,
    names_from: str,
    values_from: str,
) -> ConversionResult:
    """Parse the comma-separated id column list, run long_to_wide, and return the table with its code."""
    id_cols = parse_column_list(id_cols_text)
    names_from = names_from.strip()
    values_from = values_from.strip()

    table = long_to_wide(df, id_cols, names_from, values_from)
    return ConversionResult(table, long_to_wide_snippet(id_cols, names_from, values_from))


@loggable
def convert_dataset_format(
    input_filename: str,
    project_manifest_path: str,
    conversion: str,
    id_columns: str,
    output_filename: str,
    value_columns: str = "",
    names_to: str = DEFAULT_NAMES_TO,
    values_to: str = DEFAULT_VALUES_TO,
    names_from: str = "",
    values_from: str = "",
    explanation: str = "Converted dataset",
) -> dict:
    """
    Convert a stored dataset between wide and long format from comma-separated column lists.

    Takes column names as free text (e.g. "id, subject"), runs the conversion,
    stores the converted dataset and a Python snippet reproducing it, and returns
    both. Errors carry a message that can be shown to the user as is.

    Args:
        input_filename: Dataset resource to convert
        project_manifest_path: Path to project manifest.json
        conversion: "wide_to_long" or "long_to_wide"
        id_columns: Comma-separated id column names
        output_filename: Base filename for the converted dataset
        value_columns: Comma-separated columns to stack (wide_to_long only)
        names_to: New column for the former column names (wide_to_long only)
        values_to: New column for the values (wide_to_long only)
        names_from: Column providing the new column names (long_to_wide only)
        values_from: Column providing the values (long_to_wide only)
        explanation: Brief description of the converted dataset

    Returns:
        Dictionary containing:
            - output_filename: Stored converted dataset
            - code_filename: Stored code snippet (txt)
            - code: The code snippet itself
            - n_rows / columns / preview: Shape and first rows of the result

    Example:
        >>> convert_dataset_format(
        ...     "scores_A3F2B1D4.csv", "manifest.json", "wide_to_long",
        ...     id_columns="id", value_columns="time1, time2, time3",
        ...     names_to="timepoint", values_to="score", output_filename="scores_long"
        ... )
    """
    df = _load_resource(project_manifest_path, input_filename)

    if conversion == "wide_to_long":
        result = convert_wide_to_long(df, id_columns, value_columns, names_to, values_to)
    elif conversion == "long_to_wide":
        result = convert_long_to_wide(df, id_columns, names_from, values_from)
    else:
        raise ValueError(f"conversion must be 'wide_to_long' or 'long_to_wide'. Got: {conversion}")

    stored = _store_resource(result.table, project_manifest_path, output_filename, explanation, "csv")
    code_filename = _store_resource(
        result.code, project_manifest_path, f"{output_filename}_code",
        f"Python code reproducing {conversion} conversion of {input_filename}", "txt"
    )

    return {
        "output_filename": stored,
        "code_filename": code_filename,
        "code": result.code,
        "n_rows": len(result.table),
        "columns": [str(col) for col in result.table.columns],
        "preview": _records(result.table.head(5)),
    }


def get_all_converter_tools():
    """Return a list of all converter tools."""
    return [
        convert_dataset_format,
    ]
