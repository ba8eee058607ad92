"""
t-tests for the three common experimental layouts.

- between: one outcome column, one grouping column with exactly two levels
  (Welch's unequal-variance t-test)
- within: two measurement columns on the same subjects (paired by default)
- multiple_trials: every pair of two or more measurement columns, paired
"""

from itertools import combinations
from typing import List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from longorwide.constants import TTEST_DESIGNS
from longorwide.errors import InsufficientDataError, InvalidGroupCountError
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _require_column, _require_columns, _require_unique
from longorwide.tools.core.serialization import _jsonable
from longorwide.tools.stats.utils import _float, _significance_text


def _test_result(res, mean_difference: float, n: int, alpha: float, label: str) -> dict:
    """Turn a scipy TtestResult into a plain dict with a (1 - alpha) confidence interval."""
    ci = res.confidence_interval(confidence_level=1 - alpha)
    p_value = _float(res.pvalue)
    is_significant = p_value is not None and p_value <= alpha

    return {
        "comparison": label,
        "statistic": _float(res.statistic),
        "df": _float(res.df),
        "p_value": p_value,
        "mean_difference": _float(mean_difference),
        "conf_int": [_float(ci.low), _float(ci.high)],
        "conf_level": 1 - alpha,
        "is_significant": is_significant,
        "n": n,
        "interpretation": f"{label}: difference is {_significance_text(p_value, alpha)}. "
                          f"Mean difference: {mean_difference:.4f}.",
    }


def _paired(df: pd.DataFrame, col_a, col_b, alpha: float) -> dict:
    pairs = df[[col_a, col_b]].dropna()
    if len(pairs) < 2:
        raise InsufficientDataError(
            f"Paired t-test of '{col_a}' and '{col_b}' requires at least 2 complete pairs. Found: {len(pairs)}"
        )
    a = pairs[col_a].to_numpy(dtype=float)
    b = pairs[col_b].to_numpy(dtype=float)
    res = stats.ttest_rel(a, b)
    return _test_result(res, float(np.mean(a - b)), len(pairs), alpha, f"{col_a} vs {col_b}")


def _welch(a: pd.Series, b: pd.Series, label: str, alpha: float) -> dict:
    a = a.dropna().to_numpy(dtype=float)
    b = b.dropna().to_numpy(dtype=float)
    if len(a) < 2 or len(b) < 2:
        raise InsufficientDataError(
            f"Welch t-test ({label}) requires at least 2 observations per sample. Found: {len(a)} and {len(b)}"
        )
    res = stats.ttest_ind(a, b, equal_var=False)
    return _test_result(res, float(np.mean(a) - np.mean(b)), len(a) + len(b), alpha, label)


def _column_descriptives(df: pd.DataFrame, columns: List, label: str) -> List[dict]:
    return [
        {
            label: _jsonable(col),
            "n": int(df[col].notna().sum()),
            "mean": _float(df[col].mean()),
            "sd": _float(df[col].std()),
        }
        for col in columns
    ]


def run_ttest(
    df: pd.DataFrame,
    design: str,
    dv: Optional[str] = None,
    iv: Optional[str] = None,
    group1: Optional[str] = None,
    group2: Optional[str] = None,
    trial_cols: Optional[List[str]] = None,
    paired: Optional[bool] = None,
    alpha: float = 0.05,
) -> dict:
    """
    Run a t-test for a between-subjects, within-subjects or multiple-trials design.

    Missing values are dropped per sample (Welch) or per pair (paired tests).

    Args:
        df: Data table
        design: "between", "within" or "multiple_trials"
        dv: Outcome column (between)
        iv: Grouping column with exactly two non-missing levels (between)
        group1, group2: The two measurement columns (within)
        trial_cols: Two or more measurement columns (multiple_trials)
        paired: Paired test for within (default: True); False runs Welch's test
        alpha: Significance level; the confidence interval level is 1 - alpha

    Returns:
        For between and within:
            - test, design, result (statistic, df, p_value, mean_difference, conf_int,
              conf_level, is_significant, n, interpretation), descriptives,
              interpretation, summary
        For multiple_trials:
            - test, design, results ({"a vs b": result} for each unordered pair in
              trial_cols order), descriptives, summary

    Raises:
        ValueError: Unknown design, or the columns a design needs are not given
        ColumnNotFoundError: A named column is absent
        InvalidGroupCountError: iv does not have exactly two levels (between)
        InsufficientDataError: Fewer than 2 observations or complete pairs

    Example:
        >>> data = pd.DataFrame({"group": ["A"] * 5 + ["B"] * 5,
        ...                      "score": [10, 11, 9, 10, 12, 14, 15, 13, 16, 14]})
        >>> run_ttest(data, "between", dv="score", iv="group")["result"]["is_significant"]
        True
    """
    if design not in TTEST_DESIGNS:
        raise ValueError(f"design must be one of {list(TTEST_DESIGNS)}. Got: {design}")

    if design == "between":
        if dv is None or iv is None:
            raise ValueError("For between-subjects design, specify dv and iv")
        dv = _require_column(df, dv, "dv column")
        iv = _require_column(df, iv, "iv column")

        levels = list(pd.unique(df[iv].dropna()))
        if len(levels) != 2:
            raise InvalidGroupCountError(
                f"Between-subjects design requires exactly 2 groups in '{iv}'. "
                f"Found {len(levels)}: {[_jsonable(level) for level in levels]}"
            )

        label = f"{levels[0]} vs {levels[1]}"
        result = _welch(df.loc[df[iv] == levels[0], dv], df.loc[df[iv] == levels[1], dv], label, alpha)

        group_stats = df.groupby(iv, sort=True)[dv].agg(["count", "mean", "std"])
        descriptives = [
            {str(iv): _jsonable(level), "n": int(row["count"]), "mean": _float(row["mean"]), "sd": _float(row["std"])}
            for level, row in group_stats.iterrows()
        ]
        test_name = "Welch two-sample t-test"

    elif design == "within":
        if group1 is None or group2 is None:
            raise ValueError("For within-subjects design, specify group1 and group2")
        group1, group2 = _require_columns(df, [group1, group2], "measure columns")
        if paired is None:
            paired = True

        if paired:
            result = _paired(df, group1, group2, alpha)
            test_name = "Paired t-test"
        else:
            result = _welch(df[group1], df[group2], f"{group1} vs {group2}", alpha)
            test_name = "Welch two-sample t-test"
        descriptives = _column_descriptives(df, [group1, group2], "measure")

    else:
        if trial_cols is None or len(trial_cols) < 2:
            raise ValueError("For multiple trials design, specify at least 2 trial_cols")
        trial_cols = _require_columns(df, trial_cols, "trial_cols")
        _require_unique(trial_cols, "trial_cols")

        results = {}
        for col_a, col_b in combinations(trial_cols, 2):
            comparison = _paired(df, col_a, col_b, alpha)
            results[comparison["comparison"]] = comparison

        n_significant = sum(r["is_significant"] for r in results.values())
        return {
            "test": "Pairwise paired t-tests",
            "design": design,
            "results": results,
            "descriptives": _column_descriptives(df, trial_cols, "trial"),
            "summary": f"Pairwise paired t-tests: {len(results)} comparisons, "
                       f"{n_significant} significant at α={alpha}",
        }

    if result["p_value"] is None or result["statistic"] is None:
        summary = f"{test_name}: statistic undefined (no variance in the data)"
    else:
        summary = (
            f"{test_name}: t={result['statistic']:.4f}, df={result['df']:.2f}, "
            f"p={result['p_value']:.4f}, significant={result['is_significant']}"
        )

    return {
        "test": test_name,
        "design": design,
        "result": result,
        "descriptives": descriptives,
        "interpretation": result["interpretation"],
        "summary": summary,
    }


@loggable
def run_ttest_dataset(
    input_filename: str,
    project_manifest_path: str,
    design: str,
    output_filename: str,
    dv: Optional[str] = None,
    iv: Optional[str] = None,
    group1: Optional[str] = None,
    group2: Optional[str] = None,
    trial_cols: Optional[List[str]] = None,
    paired: Optional[bool] = None,
    alpha: float = 0.05,
    explanation: str = "t-test results",
) -> dict:
    """
    Run a t-test on a stored dataset and store the result as JSON.

    See run_ttest for the designs and their arguments.

    Returns:
        The run_ttest result with an added output_filename key.
    """
    df = _load_resource(project_manifest_path, input_filename)
    result = run_ttest(df, design, dv, iv, group1, group2, trial_cols, paired, alpha)
    result["output_filename"] = _store_resource(result, project_manifest_path, output_filename, explanation, "json")
    return result
