from __future__ import annotations


class StatsError(Exception):
    """Base class for all counter telemetry errors."""


class StoreReadError(StatsError):
    """
    A snapshot or historical record could not be read.

    ``code`` follows the report envelope: 1 for an I/O or parse failure,
    2 for state that was read fine but is unusable (null, not an object).
    """

    def __init__(self, message: str, code: int = 1) -> None:
        super().__init__(message)
        self.code = code


class MalformedHistoricalRecord(StoreReadError):
    """A line of the historical log is not a usable snapshot record."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=2)


class StoreWriteError(StatsError):
    """Persisting the latest snapshot or appending to the history failed."""


class LockContention(StatsError):
    """Another writer already holds the single-instance lock."""


class HistoryDirError(StatsError):
    """The historical log directory is missing and could not be created."""
