"""
Exception hierarchy for photosorter.

Only configuration problems are raised out of a run. Per-file transfer
failures are recorded as skipped files and metadata failures simply mean
"no capture date".
"""


class PhotoSorterError(Exception):
    """Base error for the project."""


class ConfigurationError(PhotoSorterError):
    """The source/destination pair cannot be used; the run does not start."""


class SourceNotFoundError(ConfigurationError):
    pass


class SourceNotDirectoryError(ConfigurationError):
    pass


class SameFolderError(ConfigurationError):
    pass


class DestinationInsideSourceError(ConfigurationError):
    pass


class SourceInsideDestinationError(ConfigurationError):
    pass


class DestinationNotWritableError(ConfigurationError):
    pass


class SourceUnreadableError(ConfigurationError):
    pass


class SkipLogError(PhotoSorterError):
    """The skipped files log could not be written."""


def describe_error(error: BaseException) -> str:
    """Human-readable reason for an error, suitable for the skipped files log."""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error) or error.__class__.__name__
