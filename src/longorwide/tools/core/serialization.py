"""Conversion of pandas/numpy values into plain Python for tool results."""

import math
from typing import Any, List

import numpy as np
import pandas as pd


def _jsonable(value: Any) -> Any:
    """Convert numpy scalars to Python scalars and missing values to None."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def _records(df: pd.DataFrame, index_label: str | None = None) -> List[dict]:
    """DataFrame rows as a list of dicts; the index is included under `index_label` if given."""
    if index_label is not None:
        df = df.rename_axis(index_label).reset_index()
    return [
        {str(k): _jsonable(v) for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]
