"""
Multiple linear regression with optional covariates, standardization,
hierarchical model comparison and variance inflation factors.
"""

from typing import List, Optional

import numpy as np
import pandas as pd
from statsmodels.formula.api import ols
from statsmodels.stats.anova import anova_lm
from statsmodels.stats.outliers_influence import variance_inflation_factor

from longorwide.errors import InsufficientDataError
from longorwide.infrastructure.logging import loggable
from longorwide.infrastructure.resources import _load_resource, _store_resource
from longorwide.tools.core.columns import _require_column, _require_columns, _require_unique
from longorwide.tools.stats.utils import _anova_records, _clean_label, _float, _significance_text, _term, _warn


def _formula(dv, terms: List) -> str:
    return f"{_term(dv)} ~ {' + '.join(_term(t) for t in terms)}"


def _standardize(data: pd.DataFrame, columns: List) -> pd.DataFrame:
    """z-score columns with the sample standard deviation."""
    data = data.copy()
    for col in columns:
        if not pd.api.types.is_numeric_dtype(data[col]) or pd.api.types.is_bool_dtype(data[col]):
            raise ValueError(f"Cannot standardize non-numeric column '{col}' (dtype {data[col].dtype})")
        data[col] = (data[col] - data[col].mean()) / data[col].std(ddof=1)
    return data


def _coefficients(model, names: List, alpha: float) -> List[dict]:
    ci = model.conf_int(alpha=alpha)
    return [
        {
            "term": _clean_label(term, names),
            "estimate": _float(model.params[term]),
            "std_error": _float(model.bse[term]),
            "t_value": _float(model.tvalues[term]),
            "p_value": _float(model.pvalues[term]),
            "ci_lower": _float(ci.loc[term, 0]),
            "ci_upper": _float(ci.loc[term, 1]),
        }
        for term in model.params.index
    ]


def _hierarchical(cov_model, full_model, names: List) -> dict:
    """Nested F test of the covariates-only model against the full model."""
    rows = _anova_records(anova_lm(cov_model, full_model), names)
    labels = ["covariates", "covariates + predictors"]
    models = [{"model": label, **{k: v for k, v in row.items() if k != "term"}} for label, row in zip(labels, rows)]
    return {
        "models": models,
        "r_squared_change": _float(full_model.rsquared - cov_model.rsquared),
        "f_statistic": models[1].get("F"),
        "p_value": models[1].get("p_value"),
    }


def _vif(model, names: List, collected: List[str]) -> Optional[dict]:
    """VIF per non-intercept design column; None (plus a warning) if any value is not computable."""
    exog = model.model.exog
    exog_names = model.model.exog_names
    rank = np.linalg.matrix_rank(exog)
    if rank < exog.shape[1]:
        _warn(
            collected,
            f"Could not calculate VIF: design matrix has rank {rank} for {exog.shape[1]} columns "
            f"(perfect collinearity).",
        )
        return None
    try:
        with np.errstate(divide="ignore", invalid="ignore"):
            values = {
                _clean_label(name, names): float(variance_inflation_factor(exog, i))
                for i, name in enumerate(exog_names)
                if name != "Intercept"
            }
    except (np.linalg.LinAlgError, ValueError) as e:
        _warn(collected, f"Could not calculate VIF: {e}. This may occur with categorical predictors or collinearity issues.")
        return None

    not_finite = [name for name, value in values.items() if not np.isfinite(value)]
    if not_finite:
        _warn(collected, f"Could not calculate VIF: non-finite values for {not_finite} (perfect collinearity).")
        return None
    return values


def run_multiple_regression(
    df: pd.DataFrame,
    dv: str,
    predictors: List[str],
    covariates: Optional[List[str]] = None,
    standardize: bool = False,
    alpha: float = 0.05,
) -> dict:
    """
    Fit dv ~ covariates + predictors by ordinary least squares.

    The model is fitted on the rows complete in every model column, so the
    covariates-only model used for the hierarchical comparison sees the same rows.

    Args:
        df: Data table
        dv: Outcome column
        predictors: Predictor columns (at least one)
        covariates: Optional control columns entered before the predictors. When
            given, a covariates-only model is fitted and compared with the full
            model (nested F test and R-squared change).
        standardize: z-score dv, predictors and covariates (sample SD) before fitting
        alpha: Significance level for the coefficient confidence intervals

    Returns:
        Dictionary containing:
            - test, formula, n_observations, standardized
            - coefficients: records with term, estimate, std_error, t_value, p_value,
              ci_lower, ci_upper
            - r_squared, adj_r_squared, f_statistic, f_p_value, df_model, df_resid
            - hierarchical_comparison: None without covariates
            - vif: {term: value} with 2 or more model terms, else None
            - warnings: non-fatal problems (e.g. VIF not computable)
            - interpretation, summary

    Raises:
        ColumnNotFoundError: dv, a predictor or a covariate is absent
        ColumnConflictError: A column is used in more than one role
        ValueError: No predictors, or standardize with a non-numeric column
        InsufficientDataError: Fewer complete observations than model parameters

    Warns:
        ComputationWarning: VIF could not be calculated (also listed in "warnings")
    """
    dv = _require_column(df, dv, "dependent variable")
    predictors = _require_columns(df, predictors, "predictors")
    covariates = _require_columns(df, covariates or [], "covariates")
    if not predictors:
        raise ValueError("Specify at least one predictor")

    terms = covariates + predictors
    names = [dv] + terms
    _require_unique(names, "model variables (dv, covariates and predictors)")

    data = df[names].dropna().reset_index(drop=True)
    if len(data) < len(terms) + 1:
        raise InsufficientDataError(
            f"Regression with {len(terms)} term(s) needs at least {len(terms) + 1} complete observations. "
            f"Found: {len(data)}"
        )
    if standardize:
        data = _standardize(data, names)

    collected: List[str] = []
    model = ols(_formula(dv, terms), data=data).fit()

    hierarchical = None
    if covariates:
        cov_model = ols(_formula(dv, covariates), data=data).fit()
        hierarchical = _hierarchical(cov_model, model, names)

    vif = None
    if len(terms) > 1:
        if len(data) > len(terms) + 1:
            vif = _vif(model, names, collected)
        else:
            _warn(collected, "Insufficient observations for VIF calculation")

    coefficients = _coefficients(model, names, alpha)
    r_squared = _float(model.rsquared)
    f_p_value = _float(model.f_pvalue)
    significant = [
        c["term"] for c in coefficients
        if c["term"] != "Intercept" and c["p_value"] is not None and c["p_value"] <= alpha
    ]

    interpretation = f"Overall model is {_significance_text(f_p_value, alpha)}."
    if r_squared is not None:
        interpretation += f" It explains {r_squared:.1%} of the variance in {dv}."
    interpretation += f" Significant terms: {significant if significant else 'none'}."

    formula = f"{dv} ~ {' + '.join(str(t) for t in terms)}"
    return {
        "test": "Multiple linear regression",
        "formula": formula,
        "n_observations": len(data),
        "standardized": standardize,
        "coefficients": coefficients,
        "r_squared": r_squared,
        "adj_r_squared": _float(model.rsquared_adj),
        "f_statistic": _float(model.fvalue),
        "f_p_value": f_p_value,
        "df_model": _float(model.df_model),
        "df_resid": _float(model.df_resid),
        "hierarchical_comparison": hierarchical,
        "vif": vif,
        "warnings": collected,
        "interpretation": interpretation,
        "summary": f"OLS {formula}: R²={r_squared if r_squared is not None else float('nan'):.4f}, "
                   f"n={len(data)}, {len(significant)} significant term(s)",
    }


@loggable
def run_multiple_regression_dataset(
    input_filename: str,
    project_manifest_path: str,
    dv: str,
    predictors: List[str],
    output_filename: str,
    covariates: Optional[List[str]] = None,
    standardize: bool = False,
    alpha: float = 0.05,
    explanation: str = "Multiple regression results",
) -> dict:
    """
    Fit a multiple regression on a stored dataset and store the result as JSON.

    See run_multiple_regression for the model and its outputs.

    Returns:
        The run_multiple_regression result with an added output_filename key.
    """
    df = _load_resource(project_manifest_path, input_filename)
    result = run_multiple_regression(df, dv, predictors, covariates, standardize, alpha)
    result["output_filename"] = _store_resource(result, project_manifest_path, output_filename, explanation, "json")
    return result
