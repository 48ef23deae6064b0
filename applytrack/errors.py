"""Error taxonomy shared by every component."""
from __future__ import annotations


class ApplyTrackError(Exception):
    """Base class; ``str(exc)`` is safe to show to a user."""


class ValidationError(ApplyTrackError):
    """Required input missing or out of range."""


class NotFoundError(ApplyTrackError):
    """Record absent, or not owned by the requesting identity."""


class UnsupportedFormatError(ApplyTrackError):
    """Document MIME type outside the allow-list."""


class ExtractionError(ApplyTrackError):
    """Supported document, but no text could be read from it."""


class UpstreamUnavailable(ApplyTrackError):
    """External provider or text-understanding service failed."""


class StorageError(ApplyTrackError):
    """A stored record or profile file could not be decoded."""
