"""Job search with a local fallback, resume parsing and application tracking."""

__version__ = "0.1.0"
