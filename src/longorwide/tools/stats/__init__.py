"""Statistical routines: t-tests, ANOVA, regression, assumption checks, descriptives and reliability."""

from longorwide.tools.stats.ttest import run_ttest, run_ttest_dataset
from longorwide.tools.stats.anova import run_anova, run_anova_dataset
from longorwide.tools.stats.regression import run_multiple_regression, run_multiple_regression_dataset
from longorwide.tools.stats.descriptives import (
    check_assumptions,
    descriptive_stats,
    cronbach_alpha,
    check_assumptions_dataset,
    descriptive_stats_dataset,
    cronbach_alpha_dataset,
)


def get_all_stats_tools():
    """Return a list of all dataset-level statistics tools."""
    return [
        run_ttest_dataset,
        run_anova_dataset,
        run_multiple_regression_dataset,
        check_assumptions_dataset,
        descriptive_stats_dataset,
        cronbach_alpha_dataset,
    ]
