"""Tests for run_multiple_regression."""
import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def regression_data():
    rng = np.random.default_rng(7)
    n = 60
    age = rng.normal(40, 10, n)
    stress = rng.normal(5, 2, n)
    support = rng.normal(3, 1, n)
    wellbeing = 20 - 1.5 * stress + 2.0 * support + 0.05 * age + rng.normal(0, 1, n)
    return pd.DataFrame({"age": age, "stress": stress, "support": support, "wellbeing": wellbeing})


def test_simple_model_recovers_coefficients(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    result = run_multiple_regression(regression_data, "wellbeing", ["stress", "support"])

    coefs = {c["term"]: c for c in result["coefficients"]}
    assert list(coefs) == ["Intercept", "stress", "support"]
    assert coefs["stress"]["estimate"] == pytest.approx(-1.5, abs=0.3)
    assert coefs["support"]["estimate"] == pytest.approx(2.0, abs=0.5)
    assert coefs["stress"]["ci_lower"] < coefs["stress"]["estimate"] < coefs["stress"]["ci_upper"]
    assert result["formula"] == "wellbeing ~ stress + support"
    assert result["n_observations"] == 60
    assert result["r_squared"] > 0.8
    assert result["adj_r_squared"] <= result["r_squared"]
    assert result["f_p_value"] < 0.001
    assert result["hierarchical_comparison"] is None
    assert result["warnings"] == []


def test_vif_reported_for_several_terms(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    result = run_multiple_regression(regression_data, "wellbeing", ["stress", "support"])

    assert set(result["vif"]) == {"stress", "support"}
    # Independent predictors: VIF close to 1
    assert all(1.0 <= v < 1.5 for v in result["vif"].values())


def test_no_vif_for_single_predictor(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    result = run_multiple_regression(regression_data, "wellbeing", ["stress"])

    assert result["vif"] is None


def test_hierarchical_comparison_with_covariates(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    result = run_multiple_regression(regression_data, "wellbeing", ["stress", "support"], covariates=["age"])

    assert result["formula"] == "wellbeing ~ age + stress + support"
    assert [c["term"] for c in result["coefficients"]] == ["Intercept", "age", "stress", "support"]

    comparison = result["hierarchical_comparison"]
    assert [m["model"] for m in comparison["models"]] == ["covariates", "covariates + predictors"]
    assert comparison["models"][1]["df_diff"] == 2
    assert comparison["r_squared_change"] > 0.5
    assert comparison["p_value"] < 0.001


def test_standardized_slope_equals_correlation(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    result = run_multiple_regression(regression_data, "wellbeing", ["stress"], standardize=True)

    coefs = {c["term"]: c["estimate"] for c in result["coefficients"]}
    r = np.corrcoef(regression_data["stress"], regression_data["wellbeing"])[0, 1]
    assert result["standardized"] is True
    assert coefs["Intercept"] == pytest.approx(0.0, abs=1e-10)
    assert coefs["stress"] == pytest.approx(r)


def test_rows_with_missing_values_are_dropped(regression_data):
    from longorwide.tools.stats.regression import run_multiple_regression

    data = regression_data.copy()
    data.loc[[0, 1], "age"] = np.nan

    result = run_multiple_regression(data, "wellbeing", ["stress"], covariates=["age"])

    assert result["n_observations"] == 58


def test_vif_skipped_with_too_few_observations():
    from longorwide.errors import ComputationWarning
    from longorwide.tools.stats.regression import run_multiple_regression

    data = pd.DataFrame({"y": [1.0, 3.0, 2.0], "x1": [1.0, 2.0, 3.0], "x2": [2.0, 1.0, 5.0]})

    with pytest.warns(ComputationWarning, match="Insufficient observations for VIF"):
        result = run_multiple_regression(data, "y", ["x1", "x2"])

    assert result["vif"] is None
    assert result["warnings"] == ["Insufficient observations for VIF calculation"]


def test_vif_withheld_for_perfectly_collinear_predictors():
    from longorwide.errors import ComputationWarning
    from longorwide.tools.stats.regression import run_multiple_regression

    rng = np.random.default_rng(3)
    x1 = rng.normal(size=20)
    data = pd.DataFrame({"y": 1.5 * x1 + rng.normal(scale=0.1, size=20), "x1": x1, "x2": 2 * x1})

    with pytest.warns(ComputationWarning, match="perfect collinearity"):
        result = run_multiple_regression(data, "y", ["x1", "x2"])

    assert result["vif"] is None
    assert len(result["warnings"]) == 1
    assert result["warnings"][0].startswith("Could not calculate VIF")


def test_too_few_observations_for_model():
    from longorwide.errors import InsufficientDataError
    from longorwide.tools.stats.regression import run_multiple_regression

    data = pd.DataFrame({"y": [1.0, 2.0], "x1": [1.0, 2.0], "x2": [3.0, 1.0]})

    with pytest.raises(InsufficientDataError):
        run_multiple_regression(data, "y", ["x1", "x2"])


def test_column_validation(regression_data):
    from longorwide.errors import ColumnConflictError, ColumnNotFoundError
    from longorwide.tools.stats.regression import run_multiple_regression

    with pytest.raises(ColumnNotFoundError, match="dependent variable"):
        run_multiple_regression(regression_data, "happiness", ["stress"])
    with pytest.raises(ColumnNotFoundError, match="predictors"):
        run_multiple_regression(regression_data, "wellbeing", ["stress", "sleep"])
    with pytest.raises(ColumnNotFoundError, match="covariates"):
        run_multiple_regression(regression_data, "wellbeing", ["stress"], covariates=["income"])
    with pytest.raises(ColumnConflictError):
        run_multiple_regression(regression_data, "wellbeing", ["stress"], covariates=["stress"])
    with pytest.raises(ValueError, match="at least one predictor"):
        run_multiple_regression(regression_data, "wellbeing", [])


def test_run_multiple_regression_dataset(session_workdir, regression_data):
    from longorwide.infrastructure.resources import _store_resource, _load_resource
    from longorwide.tools.stats.regression import run_multiple_regression_dataset

    manifest_path = str(session_workdir / "test_manifest.json")
    input_filename = _store_resource(regression_data, manifest_path, "wellbeing", "Wellbeing survey", "csv")

    result = run_multiple_regression_dataset(
        input_filename, manifest_path, "wellbeing", ["stress", "support"], "wellbeing_model", covariates=["age"]
    )

    stored = _load_resource(manifest_path, result["output_filename"])
    assert stored["r_squared"] == pytest.approx(result["r_squared"])
    assert stored["hierarchical_comparison"]["models"][0]["model"] == "covariates"
