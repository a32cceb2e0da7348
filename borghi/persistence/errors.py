"""Persistence-specific exceptions."""

from pathlib import Path


class PersistenceError(Exception):
    """Base exception for all persistence errors."""


class SourceMissingError(PersistenceError):
    """Raised when the temporary camera file to enqueue no longer exists.

    Callers should ask the user to retake the photo; it is never retried.
    """

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"Source asset not found: {self.path}")


class QueueSchemaError(PersistenceError):
    """Raised when a queue document matches no known schema."""
