"""
Custom exception hierarchy for the media date fixer.

Faults are contained at the single-candidate boundary: extraction faults
turn into "no metadata", mutation faults into a failed outcome.
"""


class DateFixerError(Exception):
    """Base exception for all media date fixer errors."""
    pass


class DateParseError(DateFixerError):
    """Raised when an embedded date string does not match any known grammar."""
    pass


class MetadataExtractionError(DateFixerError):
    """Raised when a metadata stream or session cannot be opened or read."""
    pass


class TimestampMutationError(DateFixerError):
    """Raised when the modification time of a file cannot be changed."""
    pass


class ContentIndexError(DateFixerError):
    """Raised when the content index rejects an update."""
    pass


class LocatorError(DateFixerError):
    """Raised when a locator string is malformed."""
    pass
