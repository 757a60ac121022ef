"""Exceptions surfaced to the user."""


class BookTrackerError(Exception):
    """Base class for user-facing errors."""


class ValidationError(BookTrackerError):
    """A record failed validation; nothing was committed."""
    
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ImportParseError(BookTrackerError):
    """An import file could not be parsed; the repository is unchanged."""
