"""Error kinds raised or reported by the ProfitPlate core.

Every failure the core can produce maps onto one ErrorKind so callers can
decide whether to alert the user or recover silently:

    PARSE             — a persisted collection was unreadable (recovered with defaults)
    VALIDATION        — a form payload is missing required fields
    NUMERIC_COERCION  — a number could not be parsed and was coerced to 0
    MISSING_REFERENCE — a recipe line points at a purchase that no longer exists
    STORAGE_WRITE     — durable storage refused a write (quota, I/O)
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    PARSE = "parse"
    VALIDATION = "validation"
    NUMERIC_COERCION = "numeric_coercion"
    MISSING_REFERENCE = "missing_reference"
    STORAGE_WRITE = "storage_write"


class ProfitPlateError(Exception):
    """Base class for errors raised by the core."""

    kind: ErrorKind = ErrorKind.PARSE

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class StorageWriteError(ProfitPlateError):
    """Durable storage rejected a write. The in-memory state was not changed."""

    kind = ErrorKind.STORAGE_WRITE


@dataclass
class FieldIssue:
    """A single problem found while validating a form payload."""
    field: str
    message: str
    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(ProfitPlateError):
    """A form payload failed validation before reaching the store."""

    kind = ErrorKind.VALIDATION

    def __init__(self, issues: list[FieldIssue]):
        self.issues = issues
        fields = ", ".join(issue.field for issue in issues)
        super().__init__(f"Invalid fields: {fields}")
