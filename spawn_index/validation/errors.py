"""Error definitions for spawn index calculations.

Every error is fatal for the pipeline invocation that raises it: no partial
results are returned. Each error carries enough detail (count and identifying
keys) to locate the offending source records.
"""

from typing import Any


class SpawnIndexError(Exception):
    """Base class for spawn index calculation errors.

    Attributes:
        message: Human-readable description
        count: Number of offending records (0 when not record-based)
        keys: Identifying keys of the offending records
    """

    def __init__(
        self,
        message: str,
        count: int = 0,
        keys: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.count = count
        self.keys = keys or []


class ValidationError(SpawnIndexError):
    """A bounded quantity is out of range, or a structural constant deviates from its fixed value."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        count: int = 0,
        keys: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message, count=count, keys=keys)
        self.field = field


class MissingDataError(SpawnIndexError):
    """A required derived quantity is still undefined after all fallback and lookup rules."""


class AlgaeLookupError(SpawnIndexError, LookupError):
    """Observed algae types have no entry in the algae coefficient table."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing algae type(s): {', '.join(missing)}",
            count=len(missing),
        )
        self.missing = missing


class ConsistencyError(SpawnIndexError):
    """A group expected to hold a single value holds several distinct values."""

    def __init__(
        self,
        message: str,
        column: str,
        count: int = 0,
        keys: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message, count=count, keys=keys)
        self.column = column
