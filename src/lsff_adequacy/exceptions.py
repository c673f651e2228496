"""
Error types raised by the adequacy pipeline

Every error subclasses ValueError so callers that already guard input
validation with ``except ValueError`` keep working.
"""

from typing import Iterable


class LSFFAdequacyError(ValueError):
    """Base class for all pipeline errors"""


class SchemaError(LSFFAdequacyError):
    """An input table is missing required columns"""

    def __init__(self, table: str, missing_columns: Iterable[str]):
        self.table = table
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"{table} must contain the following columns: "
            f"{', '.join(self.missing_columns)}"
        )


class ArgumentError(LSFFAdequacyError):
    """A run argument has the wrong type or is empty"""


class DataError(LSFFAdequacyError):
    """Input data cannot be processed without corrupting the summaries"""
