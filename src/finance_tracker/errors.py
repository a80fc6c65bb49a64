class FinanceTrackerError(Exception):
    """Base class for errors raised by finance_tracker."""


class MalformedInputError(FinanceTrackerError):
    """The CSV payload cannot be read as a CSV file with the expected header."""


class StorageError(FinanceTrackerError):
    """A persistence call failed (constraint violation, connectivity, ...)."""


class UploadTooLargeError(FinanceTrackerError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Upload of {size} bytes exceeds the {limit} byte limit.")
        self.size = size
        self.limit = limit


class ArchiveError(FinanceTrackerError):
    """The raw upload could not be archived."""
