"""
Client-facing dataset tools.

These functions load CSV files into the project's resource store, let a client
inspect them, and write results back out as CSV. All other dataset-level tools
take the `output_filename` returned here as their `input_filename`.
"""

from io import StringIO
from pathlib import Path

import numpy as np
import pandas as pd

from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.infrastructure.logging import loggable
from longorwide.tools.core.columns import _require_columns
from longorwide.tools.core.serialization import _jsonable, _records


@loggable
def store_csv_as_dataset(file_path: str, project_manifest_path: str, filename: str, explanation: str) -> dict:
    """
    Store a CSV file from a local file path provided by the MCP client.

    Parameters
    ----------
    file_path : str
        Path to a CSV file supplied by the client. The first row is the header.
    project_manifest_path : str
        Path to the project manifest file for tracking this resource.
    filename : str
        Base filename for the stored resource (without extension).
    explanation : str
        Brief description of what this dataset contains.

    Returns
    -------
    dict
        {
            "output_filename": str,   # identifier for the stored dataset
            "n_rows": int,
            "columns": list[str],
            "preview": list[dict],    # first 5 rows as records
        }

    Notes
    -----
    Only loads and stores the file. Survey exports with extra header rows
    should be passed through prepare_qualtrics_dataset afterwards.
    """
    df = pd.read_csv(file_path)

    output_filename = _store_resource(df, project_manifest_path, filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "n_rows": len(df),
        "columns": list(df.columns),
        "preview": _records(df.head(5)),
    }


@loggable
def store_csv_as_dataset_from_text(csv_content: str, project_manifest_path: str, filename: str, explanation: str) -> dict:
    """
    Store CSV data from content provided by the MCP client.

    Parameters
    ----------
    csv_content : str
        The CSV file content as a string, header row first.
    project_manifest_path : str
        Path to the project manifest file for tracking this resource.
    filename : str
        Base filename for the stored resource (without extension).
    explanation : str
        Brief description of what this dataset contains.

    Returns
    -------
    dict
        Same shape as store_csv_as_dataset.
    """
    df = pd.read_csv(StringIO(csv_content))

    output_filename = _store_resource(df, project_manifest_path, filename, explanation, "csv")

    return {
        "output_filename": output_filename,
        "n_rows": len(df),
        "columns": list(df.columns),
        "preview": _records(df.head(5)),
    }


def get_dataset_head(project_manifest_path: str, input_filename: str, n_rows: int = 10) -> dict:
    """
    Get the first n rows of a dataset for quick inspection.

    Parameters
    ----------
    project_manifest_path : str
        Path to the project manifest file.
    input_filename : str
        Filename of the dataset resource.
    n_rows : int, default=10
        Number of rows to return from the top of the dataset.

    Returns
    -------
    dict
        {
            "input_filename": str,
            "n_rows_returned": int,
            "n_rows_total": int,
            "columns": list[str],
            "rows": list[dict],
        }
    """
    df = _load_resource(project_manifest_path, input_filename)
    head_df = df.head(n_rows)

    return {
        "input_filename": input_filename,
        "n_rows_returned": len(head_df),
        "n_rows_total": len(df),
        "columns": list(df.columns),
        "rows": _records(head_df),
    }


def get_dataset_summary(project_manifest_path: str, input_filename: str, columns: list[str] | None = None) -> dict:
    """
    Get a per-column summary of a dataset, similar to R's summary() function.

    Numeric columns report count, n_missing, min, max, mean, median and std.
    Other columns report count, n_missing, n_unique and the most common value.

    Parameters
    ----------
    project_manifest_path : str
        Path to the project manifest file.
    input_filename : str
        Filename of the dataset resource.
    columns : list[str] | None, optional
        Columns to summarize. All columns if None.

    Returns
    -------
    dict
        {
            "input_filename": str,
            "n_rows": int,
            "n_columns": int,
            "column_summaries": dict,   # column name -> summary dict
        }

    Raises
    ------
    ColumnNotFoundError
        If a requested column is absent.
    """
    df = _load_resource(project_manifest_path, input_filename)

    if columns is None:
        cols_to_summarize = list(df.columns)
    else:
        cols_to_summarize = _require_columns(df, columns, "columns")

    column_summaries = {}
    for col in cols_to_summarize:
        col_data = df[col]
        count = int(col_data.notna().sum())
        summary = {
            "dtype": str(col_data.dtype),
            "count": count,
            "n_missing": int(col_data.isna().sum()),
        }

        if pd.api.types.is_numeric_dtype(col_data) and not pd.api.types.is_bool_dtype(col_data):
            for stat in ("min", "max", "mean", "median", "std"):
                summary[stat] = _jsonable(float(getattr(col_data, stat)())) if count > 0 else None
        else:
            value_counts = col_data.value_counts()
            summary["n_unique"] = int(col_data.nunique())
            if count > 0:
                top_value = value_counts.index[0]
                summary["top_value"] = _jsonable(top_value) if isinstance(top_value, (np.generic, bool, int, float)) else str(top_value)
                summary["top_freq"] = int(value_counts.iloc[0])
            else:
                summary["top_value"] = None
                summary["top_freq"] = 0

        column_summaries[str(col)] = summary

    return {
        "input_filename": input_filename,
        "n_rows": len(df),
        "n_columns": len(df.columns),
        "column_summaries": column_summaries,
    }


@loggable
def export_dataset_to_csv(project_manifest_path: str, input_filename: str, output_path: str) -> dict:
    """
    Write a stored dataset to a CSV file outside the project directory.

    Parameters
    ----------
    project_manifest_path : str
        Path to the project manifest file.
    input_filename : str
        Filename of the dataset resource.
    output_path : str
        Destination file path. Parent directories are created if needed.

    Returns
    -------
    dict
        {
            "output_path": str,
            "n_rows": int,
            "n_columns": int,
        }
    """
    df = _load_resource(project_manifest_path, input_filename)

    path = Path(output_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)

    return {
        "output_path": str(path),
        "n_rows": len(df),
        "n_columns": len(df.columns),
    }


def get_all_dataset_tools():
    """Return a list of all dataset storage and inspection tools."""
    return [
        store_csv_as_dataset,
        store_csv_as_dataset_from_text,
        get_dataset_head,
        get_dataset_summary,
        export_dataset_to_csv,
    ]
