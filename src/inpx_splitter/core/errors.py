"""Exception hierarchy for the split pipeline."""

from pathlib import Path


class InpxSplitError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(InpxSplitError):
    """Bad working directory, missing input or invalid options."""


class ArchiveError(InpxSplitError):
    """Failure opening, reading or rewriting an archive."""


class ArchiveNotFoundError(ArchiveError):
    pass


class CorruptArchiveError(ArchiveError):
    pass


class ExtractionFailedError(ArchiveError):
    pass


class EntryNotFoundError(ArchiveError):
    pass


class ArchiveWriteError(ArchiveError):
    pass


class NamingConflictError(InpxSplitError):
    """Variant output name cannot be derived or collides with the source."""


class VariantBuildError(InpxSplitError):
    """Building a variant archive failed."""

    def __init__(self, tag: str, cause: Exception):
        self.tag = tag
        self.cause = cause
        super().__init__(f"Failed to build variant '{tag}': {cause}")


class RecordReadError(InpxSplitError):
    """A record file could not be read while counting books."""

    def __init__(self, file: Path, cause: Exception | None = None):
        self.file = file
        self.cause = cause
        message = f"Cannot read record file {file}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class VersionMarkerMissingError(InpxSplitError):
    """version.info is absent or does not start with a YYYYMMDD stamp."""


class CleanupError(InpxSplitError):
    """A scratch resource could not be removed. Logged, never raised."""


class PipelineInterrupted(KeyboardInterrupt):
    """SIGTERM received while the pipeline runs; handled like Ctrl+C."""


class NoRecordsWarning(UserWarning):
    """No record files matched a variant's glob."""
