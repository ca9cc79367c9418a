"""Exception taxonomy for search, storage and skill analysis."""
from __future__ import annotations

from typing import Any


class SkillMatchError(Exception):
    """Base class for every error raised by skillmatch."""


class ConfigError(SkillMatchError):
    pass


class QueryFailed(SkillMatchError):
    """The listing query could not be executed; no rows are returned."""


class IterationFailed(SkillMatchError):
    """The result stream broke after rows had already been read."""

    def __init__(self, message: str, rows_read: int = 0) -> None:
        super().__init__(message)
        self.rows_read = rows_read


class RowDecodeFailed(SkillMatchError):
    """A single row could not be turned into a ListingRecord.

    Never escapes the store: the row is logged and skipped.
    """

    def __init__(self, message: str, row: Any = None) -> None:
        super().__init__(message)
        self.row = row


class AnalysisError(SkillMatchError):
    pass


class AnalysisQuotaExceeded(AnalysisError):
    """The analysis provider refused the call for quota or rate reasons."""
