"""
models/errors.py
----------------
Exceptions raised (or carried inside `Err`) by the data access layer.
"""


class RepositoryError(Exception):
    """Base class for data access failures."""


class ValidationError(RepositoryError):
    """Input rejected before any statement was sent; fix the data, don't retry."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class PersistenceError(RepositoryError):
    """The database refused or failed to execute a statement."""
