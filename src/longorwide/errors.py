"""
Exceptions and warnings raised by longorwide.

Validation errors are raised before any computation starts. Non-fatal problems
inside a statistical routine (an uncomputable VIF, a failed homogeneity test)
are emitted as ComputationWarning and also recorded in the result's
"warnings" list.
"""

from typing import Iterable, List


class LongOrWideError(Exception):
    """Base class for all longorwide errors."""


class ColumnNotFoundError(LongOrWideError, ValueError):
    """A referenced column is absent from the table."""

    def __init__(self, role: str, missing: Iterable, available: Iterable):
        self.role = role
        self.missing: List = list(missing)
        self.available: List = list(available)
        super().__init__(
            f"Some {role} not found in data: {self.missing}. "
            f"Available columns: {self.available}"
        )


class ColumnConflictError(LongOrWideError, ValueError):
    """Column roles overlap, or a generated column name is already taken."""


class InvalidGroupCountError(LongOrWideError, ValueError):
    """A two-group test got a grouping column with the wrong number of levels."""


class InsufficientDataError(LongOrWideError, ValueError):
    """Too few complete observations to compute the statistic."""


class ComputationWarning(UserWarning):
    """Non-fatal failure of a sub-computation; the result is still returned."""


class DuplicateKeyWarning(ComputationWarning):
    """long_to_wide found more than one row for an (id, name) combination."""
