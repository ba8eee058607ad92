"""
longorwide: reshape survey and experimental data between wide and long form,
clean survey-platform exports, and run classical hypothesis tests.
"""

from longorwide.errors import (
    ColumnConflictError,
    ColumnNotFoundError,
    ComputationWarning,
    DuplicateKeyWarning,
    InsufficientDataError,
    InvalidGroupCountError,
    LongOrWideError,
)
from longorwide.tools.transform.reshape import wide_to_long, long_to_wide
from longorwide.tools.transform.converter import (
    ConversionResult,
    parse_column_list,
    convert_wide_to_long,
    convert_long_to_wide,
)
from longorwide.tools.survey.qualtrics import prepare_qualtrics, reverse_score
from longorwide.tools.stats.ttest import run_ttest
from longorwide.tools.stats.anova import run_anova
from longorwide.tools.stats.regression import run_multiple_regression
from longorwide.tools.stats.descriptives import (
    check_assumptions,
    descriptive_stats,
    cronbach_alpha,
)

__version__ = "0.1.0"

__all__ = [
    'wide_to_long',
    'long_to_wide',
    'ConversionResult',
    'parse_column_list',
    'convert_wide_to_long',
    'convert_long_to_wide',
    'prepare_qualtrics',
    'reverse_score',
    'run_ttest',
    'run_anova',
    'run_multiple_regression',
    'check_assumptions',
    'descriptive_stats',
    'cronbach_alpha',
    'LongOrWideError',
    'ColumnNotFoundError',
    'ColumnConflictError',
    'InvalidGroupCountError',
    'InsufficientDataError',
    'ComputationWarning',
    'DuplicateKeyWarning',
]
