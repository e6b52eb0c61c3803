"""Detector error taxonomy. Every failure aborts the run; nothing is retried here."""


class DetectorError(Exception):
    """Base class for errors that abort a detection run."""


class MalformedPointError(DetectorError):
    """A point failed validation, usually because its value is not a finite float."""

    def __init__(self, sequence, timestamp, value, reason: str = ""):
        self.sequence = sequence
        self.timestamp = timestamp
        self.value = value
        message = (
            f"Sequence number {sequence} (time {timestamp}, val {value!r}) "
            f"is malformed"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AmbiguousSeriesError(DetectorError):
    """The source matched zero or several series instead of exactly one."""

    def __init__(self, pattern: str, count: int):
        self.pattern = pattern
        self.count = count
        super().__init__(f"Expected 1 time series, received {count} for pattern: {pattern}")


class UpstreamError(DetectorError):
    """Fetching points or writing results failed in the storage layer."""
