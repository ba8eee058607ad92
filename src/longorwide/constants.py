"""
Constants for the longorwide package.

DEFAULT_NAMES_TO / DEFAULT_VALUES_TO: default labels of the name/value columns created by wide_to_long.
DEFAULT_HEADER_ROWS: number of metadata rows Qualtrics puts under the header (import ids, question text).
SHAPIRO_MIN_N / SHAPIRO_MAX_N: sample-size range in which the Shapiro-Wilk test is run.
TTEST_DESIGNS / ANOVA_DESIGNS: supported design modes.
MISSING_NAME_LABEL: column label used by long_to_wide for rows whose name cell is missing.
"""

DEFAULT_NAMES_TO = "variable"
DEFAULT_VALUES_TO = "value"

DEFAULT_HEADER_ROWS = 2

SHAPIRO_MIN_N = 3
SHAPIRO_MAX_N = 5000

TTEST_DESIGNS = ("within", "between", "multiple_trials")
ANOVA_DESIGNS = ("one_way", "two_way", "repeated_measures")

MISSING_NAME_LABEL = "NA"
