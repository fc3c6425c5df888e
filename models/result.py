"""
models/result.py
----------------
Tagged outcomes returned by repository lookups and inserts.

A lookup either finds the row (`Ok`), finds nothing (`NOT_FOUND`, a normal
outcome), or fails to run (`Err`). Only `Ok` is truthy.
"""

from dataclasses import dataclass
from typing import Any, Union

from models.errors import RepositoryError


@dataclass(frozen=True)
class Ok:
    """Successful outcome carrying a value (a record or a new key)."""
    value: Any

    def __bool__(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.value


class NotFound:
    """The looked-up row does not exist."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def unwrap(self) -> Any:
        raise LookupError("Record not found")


NOT_FOUND = NotFound()


@dataclass(frozen=True)
class Err:
    """The operation was rejected or the statement failed."""
    error: RepositoryError

    def __bool__(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Ok, NotFound, Err]
