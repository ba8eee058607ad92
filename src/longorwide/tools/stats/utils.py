"""Helpers shared by the statistics routines: formula terms, table conversion, warnings."""

import math
import warnings
from typing import Iterable, List, Optional

import pandas as pd

from longorwide.errors import ComputationWarning
from longorwide.tools.core.serialization import _jsonable

_ANOVA_COLUMNS = {
    "PR(>F)": "p_value",
    "Pr > F": "p_value",
    "F Value": "F",
    "Num DF": "num_df",
    "Den DF": "den_df",
}


def _term(name: str) -> str:
    """Formula term for a column; names that are not Python identifiers are quoted with Q()."""
    if isinstance(name, str) and name.isidentifier():
        return name
    return f"Q({str(name)!r})"


def _clean_label(label: str, names: Iterable[str]) -> str:
    """Undo _term quoting in a model term label such as "Q('my var'):group"."""
    for name in names:
        quoted = _term(name)
        if quoted != name:
            label = label.replace(quoted, str(name))
    return label


def _float(value) -> Optional[float]:
    """float(value), with NaN and infinities reported as None."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _anova_records(table: pd.DataFrame, names: Iterable[str]) -> List[dict]:
    """statsmodels anova_lm table as records with a 'term' key and snake_case columns."""
    names = list(names)
    renamed = table.rename(columns=_ANOVA_COLUMNS)
    records = []
    for label, row in renamed.iterrows():
        record = {"term": _clean_label(str(label), names)}
        for col, value in row.items():
            record[str(col)] = _float(value) if isinstance(value, (int, float)) else _jsonable(value)
        records.append(record)
    return records


def _warn(collected: List[str], message: str) -> None:
    """Emit a ComputationWarning and record its message in a result's warnings list."""
    collected.append(message)
    warnings.warn(message, ComputationWarning, stacklevel=3)


def _significance_text(p_value: Optional[float], alpha: float) -> str:
    if p_value is None:
        return "p-value could not be computed"
    if p_value <= alpha:
        return f"significant (p={p_value:.4f} ≤ α={alpha})"
    return f"not significant (p={p_value:.4f} > α={alpha})"
