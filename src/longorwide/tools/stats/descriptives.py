"""
Descriptive statistics, assumption checks and scale reliability.

check_assumptions: Shapiro-Wilk normality (overall or per group) and Bartlett's
    test of equal variances across groups
descriptive_stats: n, mean, sd, min, max, median per variable, optionally per group
cronbach_alpha: internal consistency of a set of scale items
"""

from typing import List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from longorwide.constants import SHAPIRO_MAX_N, SHAPIRO_MIN_N
from longorwide.errors import ColumnConflictError, InsufficientDataError
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _optional_column, _require_column, _require_columns, _require_unique
from longorwide.tools.core.serialization import _jsonable, _records
from longorwide.tools.stats.utils import _float, _warn


def _shapiro(values: pd.Series, alpha: float) -> dict:
    statistic, p_value = stats.shapiro(values.to_numpy(dtype=float))
    return {
        "statistic": _float(statistic),
        "p_value": _float(p_value),
        "n": len(values),
        "is_normal": bool(p_value > alpha),
    }


def _bartlett(samples: List[np.ndarray], alpha: float) -> dict:
    with np.errstate(divide="ignore", invalid="ignore"):
        statistic, p_value = stats.bartlett(*samples)
    if not np.isfinite(statistic):
        raise ValueError("Bartlett statistic is not finite; a group has zero variance or fewer than 2 observations")
    is_homogeneous = bool(p_value > alpha)
    return {
        "test": "Bartlett's test",
        "statistic": _float(statistic),
        "p_value": _float(p_value),
        "is_homogeneous": is_homogeneous,
        "interpretation": "Variances appear homogeneous" if is_homogeneous else "Variances may not be homogeneous",
    }


def check_assumptions(
    df: pd.DataFrame,
    dv: str,
    group: Optional[str] = None,
    check_normality: bool = True,
    check_homogeneity: bool = True,
    alpha: float = 0.05,
) -> dict:
    """
    Check the normality and equal-variance assumptions of t-tests and ANOVA.

    Normality is tested with Shapiro-Wilk on the non-missing dv values, either
    overall or (with `group`) separately for every group. The test is only run
    for samples of 3 to 5000 values; an overall sample outside that range gets a
    note instead, and such groups are left out of normality_by_group.

    Homogeneity of variance is tested with Bartlett's test when `group` is given.
    If the test cannot be computed, the failure is reported inside the result as
    {"test": "Bartlett's test", "error": message} and listed in "warnings".

    Args:
        df: Data table
        dv: Outcome column
        group: Optional grouping column
        check_normality: Run the normality test(s)
        check_homogeneity: Run Bartlett's test (needs group)
        alpha: Significance level for is_normal / is_homogeneous

    Returns:
        Dictionary containing any of:
            - normality: overall Shapiro-Wilk result (no group)
            - normality_by_group: {group value: Shapiro-Wilk result}
            - homogeneity: Bartlett's test result or embedded error
        plus dv, group, warnings and summary

    Warns:
        ComputationWarning: Bartlett's test failed
    """
    dv = _require_column(df, dv, "dv column")
    group = _optional_column(df, group, "group column")

    collected: List[str] = []
    results = {"dv": dv, "group": group}
    lines = []

    if check_normality:
        if group is None:
            values = df[dv].dropna()
            if SHAPIRO_MIN_N <= len(values) <= SHAPIRO_MAX_N:
                normality = {"test": "Shapiro-Wilk", **_shapiro(values, alpha)}
                normality["interpretation"] = (
                    "Data appear normally distributed" if normality["is_normal"]
                    else "Data may not be normally distributed"
                )
                lines.append(f"Shapiro-Wilk: W={normality['statistic']:.4f}, p={normality['p_value']:.4f}")
            else:
                normality = {
                    "test": "Shapiro-Wilk",
                    "n": len(values),
                    "note": f"Sample size outside valid range ({SHAPIRO_MIN_N}-{SHAPIRO_MAX_N})",
                }
                lines.append(normality["note"])
            results["normality"] = normality
        else:
            by_group = {}
            for level in pd.unique(df[group].dropna()):
                values = df.loc[df[group] == level, dv].dropna()
                if SHAPIRO_MIN_N <= len(values) <= SHAPIRO_MAX_N:
                    by_group[str(level)] = _shapiro(values, alpha)
            results["normality_by_group"] = by_group
            n_normal = sum(r["is_normal"] for r in by_group.values())
            lines.append(f"Shapiro-Wilk: {n_normal} of {len(by_group)} tested group(s) appear normal")

    if check_homogeneity and group is not None:
        samples = [
            df.loc[df[group] == level, dv].dropna().to_numpy(dtype=float)
            for level in pd.unique(df[group].dropna())
        ]
        try:
            homogeneity = _bartlett(samples, alpha)
            lines.append(f"Bartlett: statistic={homogeneity['statistic']:.4f}, p={homogeneity['p_value']:.4f}")
        except (ValueError, ArithmeticError, np.linalg.LinAlgError) as e:
            homogeneity = {"test": "Bartlett's test", "error": str(e)}
            _warn(collected, f"Bartlett's test failed: {e}")
            lines.append("Bartlett: failed")
        results["homogeneity"] = homogeneity

    results["warnings"] = collected
    results["summary"] = "; ".join(lines) if lines else "No checks requested"
    return results


def _describe(values: pd.Series) -> dict:
    values = values.dropna()
    return {
        "n": len(values),
        "mean": values.mean(),
        "sd": values.std(),
        "min": values.min(),
        "max": values.max(),
        "median": values.median(),
    }


def descriptive_stats(df: pd.DataFrame, variables: List[str], group: Optional[str] = None) -> pd.DataFrame:
    """
    Count, mean, standard deviation, minimum, maximum and median of each variable.

    Missing values are excluded from every statistic. With `group`, rows are
    produced per variable and then per group value (sorted); missing group values
    form a group of their own.

    Args:
        df: Data table
        variables: Numeric columns to describe
        group: Optional grouping column

    Returns:
        DataFrame with columns [group,] variable, n, mean, sd, min, max, median

    Example:
        >>> descriptive_stats(pd.DataFrame({"x": [10, 12, 14, 16, 18]}), ["x"])["mean"].iloc[0]
        14.0
    """
    variables = _require_columns(df, variables, "variables")
    group = _optional_column(df, group, "group column")
    if group is not None and group in variables:
        raise ColumnConflictError(f"Group column '{group}' cannot also be described as a variable")

    columns = ["variable", "n", "mean", "sd", "min", "max", "median"]
    rows = []
    if group is None:
        for var in variables:
            rows.append({"variable": var, **_describe(df[var])})
    else:
        columns = [group] + columns
        grouped = df.groupby(group, sort=True, dropna=False, observed=True)
        for var in variables:
            for level, values in grouped[var]:
                rows.append({group: level, "variable": var, **_describe(values)})

    return pd.DataFrame(rows, columns=columns)


def _raw_alpha(X: np.ndarray) -> float:
    k = X.shape[1]
    if k < 2:
        return float("nan")
    item_var = X.var(axis=0, ddof=1).sum()
    total_var = X.sum(axis=1).var(ddof=1)
    return (k / (k - 1.0)) * (1 - item_var / total_var)


def _standardized_alpha(X: np.ndarray) -> float:
    """Alpha from the mean inter-item correlation r: k*r / (1 + (k-1)*r)."""
    k = X.shape[1]
    if k < 2:
        return float("nan")
    corr = np.corrcoef(X, rowvar=False)
    r_bar = corr[~np.eye(k, dtype=bool)].mean()
    return k * r_bar / (1 + (k - 1) * r_bar)


def _reliability_label(alpha: Optional[float]) -> str:
    if alpha is None:
        return "undefined"
    if alpha >= 0.9:
        return "excellent"
    if alpha >= 0.8:
        return "good"
    if alpha >= 0.7:
        return "acceptable"
    if alpha >= 0.6:
        return "questionable"
    if alpha >= 0.5:
        return "poor"
    return "unacceptable"


def cronbach_alpha(df: pd.DataFrame, items: List[str]) -> dict:
    """
    Cronbach's alpha for a set of scale items.

    Rows with a missing value in any item are dropped first.

    Args:
        df: Data table with one column per item
        items: Item columns (at least 2)

    Returns:
        Dictionary containing:
            - alpha: raw alpha from item and total-score variances
            - standardized_alpha: alpha from the mean inter-item correlation
            - n_items, n_observations
            - item_statistics: records with item, n, mean, sd, raw_r (item vs total
              score) and r_drop (item vs total of the other items)
            - alpha_if_dropped: records with item, raw_alpha, std_alpha computed
              without that item (None when only one item would remain)
            - interpretation, summary

    Raises:
        ColumnNotFoundError: An item column is absent
        ValueError: Fewer than 2 items
        InsufficientDataError: Fewer than 2 complete rows
    """
    items = _require_columns(df, items, "items")
    if len(items) < 2:
        raise ValueError(f"Cronbach's alpha needs at least 2 items. Got: {len(items)}")
    _require_unique(items, "items")

    item_data = df[items].dropna()
    if len(item_data) < 2:
        raise InsufficientDataError(
            f"Insufficient data for alpha calculation: {len(item_data)} complete row(s), at least 2 needed"
        )

    X = item_data.to_numpy(dtype=float)
    total = X.sum(axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        alpha = _float(_raw_alpha(X))
        std_alpha = _float(_standardized_alpha(X))

        item_statistics = []
        alpha_if_dropped = []
        for i, item in enumerate(items):
            rest = np.delete(X, i, axis=1)
            item_statistics.append({
                "item": _jsonable(item),
                "n": len(X),
                "mean": _float(X[:, i].mean()),
                "sd": _float(X[:, i].std(ddof=1)),
                "raw_r": _float(np.corrcoef(X[:, i], total)[0, 1]),
                "r_drop": _float(np.corrcoef(X[:, i], rest.sum(axis=1))[0, 1]),
            })
            alpha_if_dropped.append({
                "item": _jsonable(item),
                "raw_alpha": _float(_raw_alpha(rest)),
                "std_alpha": _float(_standardized_alpha(rest)),
            })

    label = _reliability_label(alpha)
    alpha_text = f"{alpha:.4f}" if alpha is not None else "undefined"
    return {
        "alpha": alpha,
        "standardized_alpha": std_alpha,
        "n_items": len(items),
        "n_observations": len(item_data),
        "item_statistics": item_statistics,
        "alpha_if_dropped": alpha_if_dropped,
        "interpretation": f"Internal consistency is {label} (alpha={alpha_text}).",
        "summary": f"Cronbach's alpha={alpha_text} ({label}), {len(items)} items, n={len(item_data)}",
    }


@loggable
def check_assumptions_dataset(
    input_filename: str,
    project_manifest_path: str,
    dv: str,
    group: Optional[str] = None,
    check_normality: bool = True,
    check_homogeneity: bool = True,
    alpha: float = 0.05,
) -> dict:
    """Check normality and homogeneity of variance for a stored dataset. See check_assumptions."""
    df = _load_resource(project_manifest_path, input_filename)
    return check_assumptions(df, dv, group, check_normality, check_homogeneity, alpha)


@loggable
def descriptive_stats_dataset(
    input_filename: str,
    project_manifest_path: str,
    variables: List[str],
    output_filename: str,
    group: Optional[str] = None,
    explanation: str = "Descriptive statistics",
) -> dict:
    """
    Compute descriptive statistics for a stored dataset and store the table as CSV.

    Returns:
        Dictionary containing:
            - output_filename: Stored descriptives table
            - n_rows: Rows in the table
            - rows: The table as records
    """
    df = _load_resource(project_manifest_path, input_filename)
    table = descriptive_stats(df, variables, group)
    output_filename = _store_resource(table, project_manifest_path, output_filename, explanation, "csv")
    return {
        "output_filename": output_filename,
        "n_rows": len(table),
        "rows": _records(table),
    }


@loggable
def cronbach_alpha_dataset(input_filename: str, project_manifest_path: str, items: List[str]) -> dict:
    """Cronbach's alpha for item columns of a stored dataset. See cronbach_alpha."""
    df = _load_resource(project_manifest_path, input_filename)
    return cronbach_alpha(df, items)
