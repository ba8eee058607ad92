"""
Analysis of variance for one-way, two-way (with interaction) and repeated-measures designs.

Between-subjects designs are fitted as linear models with statsmodels' formula
interface and summarised with sequential (type I) sums of squares, which is
what R's aov() reports. Repeated measures use statsmodels' AnovaRM.
"""

from typing import List, Optional

import pandas as pd
from statsmodels.formula.api import ols
from statsmodels.stats.anova import AnovaRM, anova_lm

from longorwide.constants import ANOVA_DESIGNS
from longorwide.errors import InsufficientDataError, InvalidGroupCountError
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _require_column
from longorwide.tools.core.serialization import _jsonable
from longorwide.tools.stats.utils import _anova_records, _float, _significance_text, _term, _warn


def _as_factor(data: pd.DataFrame, column) -> None:
    """Cast a column to categorical in place, requiring at least two levels."""
    data[column] = data[column].astype("category").cat.remove_unused_categories()
    n_levels = len(data[column].cat.categories)
    if n_levels < 2:
        raise InvalidGroupCountError(f"Factor '{column}' needs at least 2 levels. Found: {n_levels}")


def _eta_squared(table: pd.DataFrame, names: List) -> dict:
    """SS_term / SS_total for every model term; the total includes the residual."""
    ss_total = float(table["sum_sq"].sum())
    records = _anova_records(table, names)
    return {
        record["term"]: (record["sum_sq"] / ss_total if ss_total > 0 else None)
        for record in records
        if record["term"] != "Residual"
    }


def _complete_subjects(data: pd.DataFrame, subject_id, within_factor, collected: List[str]) -> pd.DataFrame:
    """Keep subjects with exactly one observation per level of the within factor."""
    counts = data.groupby([subject_id, within_factor], observed=True).size().unstack(fill_value=0)
    complete = counts.index[(counts == 1).all(axis=1)]
    dropped = [_jsonable(s) for s in counts.index if s not in complete]
    if dropped:
        _warn(
            collected,
            f"Dropped {len(dropped)} subject(s) without exactly one observation per level of "
            f"'{within_factor}': {dropped}",
        )
    return data[data[subject_id].isin(complete)].reset_index(drop=True)


def _between_subjects(data: pd.DataFrame, dv, factors: List, interaction: bool) -> tuple:
    for factor in factors:
        _as_factor(data, factor)

    joiner = " * " if interaction else " + "
    formula = f"{_term(dv)} ~ {joiner.join(_term(f) for f in factors)}"

    n_params = 1
    for factor in factors:
        n_params *= len(data[factor].cat.categories)
    if len(data) <= n_params:
        raise InsufficientDataError(
            f"ANOVA of '{dv}' needs more complete observations than model cells ({n_params}). Found: {len(data)}"
        )

    model = ols(formula, data=data).fit()
    table = anova_lm(model, typ=1)
    return formula, table


def run_anova(
    df: pd.DataFrame,
    design: str,
    dv: str,
    iv1: Optional[str] = None,
    iv2: Optional[str] = None,
    subject_id: Optional[str] = None,
    within_factor: Optional[str] = None,
    alpha: float = 0.05,
) -> dict:
    """
    Run a one-way, two-way or repeated-measures ANOVA.

    Rows with a missing value in any model column are dropped. Factor columns are
    treated as categorical whatever their dtype. For repeated measures, subjects
    left without exactly one observation per level are then dropped as a whole.

    Eta-squared (proportion of the total sum of squares, residual included, per
    term) is reported for the between-subjects designs only.

    Args:
        df: Data table in long format (one row per observation)
        design: "one_way" (dv ~ iv1), "two_way" (dv ~ iv1 * iv2) or "repeated_measures"
        dv: Outcome column
        iv1: First factor (one_way, two_way)
        iv2: Second factor (two_way)
        subject_id: Subject identifier (repeated_measures)
        within_factor: Within-subject factor (repeated_measures)
        alpha: Significance level for the is_significant flags

    Returns:
        Dictionary containing:
            - test, design, formula (between-subjects designs), n_observations
            - anova_table: records with term, df, sum_sq, mean_sq, F, p_value for
              between-subjects designs; term, F, num_df, den_df, p_value for
              repeated measures
            - eta_squared: {term: value} (between-subjects designs only)
            - significant_terms: terms with p <= alpha
            - warnings: subjects dropped from a repeated-measures design
            - interpretation, summary

    Raises:
        ValueError: Unknown design or missing design arguments
        ColumnNotFoundError: A named column is absent
        InvalidGroupCountError: A factor has fewer than 2 levels
        InsufficientDataError: Not enough complete observations (or, for repeated
            measures, fewer than 2 complete subjects) to fit the model

    Warns:
        ComputationWarning: Repeated-measures subjects lacking exactly one observation
            per level were dropped (also listed in "warnings")

    Example:
        >>> data = pd.DataFrame({"group": ["A", "A", "B", "B", "C", "C"],
        ...                      "score": [1.0, 2.0, 4.0, 5.0, 7.0, 9.0]})
        >>> run_anova(data, "one_way", dv="score", iv1="group")["eta_squared"]["group"] > 0.9
        True
    """
    if design not in ANOVA_DESIGNS:
        raise ValueError(f"design must be one of {list(ANOVA_DESIGNS)}. Got: {design}")

    if design == "one_way":
        if dv is None or iv1 is None:
            raise ValueError("For one-way ANOVA, specify dv and iv1")
        dv = _require_column(df, dv, "dv column")
        factors = [_require_column(df, iv1, "iv1 column")]
    elif design == "two_way":
        if dv is None or iv1 is None or iv2 is None:
            raise ValueError("For two-way ANOVA, specify dv, iv1, and iv2")
        dv = _require_column(df, dv, "dv column")
        factors = [_require_column(df, iv1, "iv1 column"), _require_column(df, iv2, "iv2 column")]
    else:
        if dv is None or subject_id is None or within_factor is None:
            raise ValueError("For repeated measures ANOVA, specify dv, subject_id, and within_factor")
        dv = _require_column(df, dv, "dv column")
        subject_id = _require_column(df, subject_id, "subject_id column")
        within_factor = _require_column(df, within_factor, "within_factor column")
        factors = [within_factor]

    collected: List[str] = []
    if design == "repeated_measures":
        data = df[[dv, subject_id, within_factor]].dropna().reset_index(drop=True)
        n_levels = data[within_factor].nunique()
        if n_levels < 2:
            raise InvalidGroupCountError(f"Factor '{within_factor}' needs at least 2 levels. Found: {n_levels}")
        data = _complete_subjects(data, subject_id, within_factor, collected)
        if data[subject_id].nunique() < 2:
            raise InsufficientDataError("Repeated measures ANOVA requires at least 2 subjects with complete data")

        table = AnovaRM(data, depvar=dv, subject=subject_id, within=[within_factor]).fit().anova_table
        formula = None
        eta_squared = None
        test_name = "Repeated measures ANOVA"
    else:
        data = df[[dv] + factors].dropna().reset_index(drop=True)
        formula, table = _between_subjects(data, dv, factors, interaction=(design == "two_way"))
        eta_squared = _eta_squared(table, [dv] + factors)
        test_name = "One-way ANOVA" if design == "one_way" else "Two-way ANOVA"

    anova_table = _anova_records(table, [dv] + factors)
    significant_terms = [
        record["term"] for record in anova_table
        if record.get("p_value") is not None and record["p_value"] <= alpha
    ]

    parts = []
    for record in anova_table:
        if record["term"] == "Residual":
            continue
        f_value = record.get("F")
        text = f"{record['term']}: {_significance_text(record.get('p_value'), alpha)}"
        if f_value is not None:
            text = f"{record['term']}: F={f_value:.4f}, {_significance_text(record.get('p_value'), alpha)}"
        if eta_squared and eta_squared.get(record["term"]) is not None:
            text += f", η²={eta_squared[record['term']]:.4f}"
        parts.append(text)

    return {
        "test": test_name,
        "design": design,
        "formula": formula,
        "n_observations": len(data),
        "anova_table": anova_table,
        "eta_squared": eta_squared,
        "significant_terms": significant_terms,
        "warnings": collected,
        "interpretation": f"{len(significant_terms)} of {len(parts)} term(s) significant at α={alpha}.",
        "summary": f"{test_name}: " + "; ".join(parts),
    }


@loggable
def run_anova_dataset(
    input_filename: str,
    project_manifest_path: str,
    design: str,
    dv: str,
    output_filename: str,
    iv1: Optional[str] = None,
    iv2: Optional[str] = None,
    subject_id: Optional[str] = None,
    within_factor: Optional[str] = None,
    alpha: float = 0.05,
    explanation: str = "ANOVA results",
) -> dict:
    """
    Run an ANOVA on a stored long-format dataset and store the result as JSON.

    See run_anova for the designs and their arguments. Wide datasets can be
    converted first with wide_to_long_dataset.

    Returns:
        The run_anova result with an added output_filename key.
    """
    df = _load_resource(project_manifest_path, input_filename)
    result = run_anova(df, design, dv, iv1, iv2, subject_id, within_factor, alpha)
    result["output_filename"] = _store_resource(result, project_manifest_path, output_filename, explanation, "json")
    return result
