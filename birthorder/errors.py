# birthorder/errors.py
from __future__ import annotations

from typing import List, Optional


class BirthOrderError(Exception):
    """Base class for errors surfaced by the submissions API."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(BirthOrderError):
    """Missing or invalid input. Client fault."""

    status_code = 400
    public_message = "Validation error"

    def __init__(self, message: str = "", details: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.details: List[str] = list(details or [])


class StorageError(BirthOrderError):
    """Persistence or read failure. The backend message is never sent to clients."""

    status_code = 500
    public_message = "Database error"


class ExportError(BirthOrderError):
    status_code = 404
    public_message = "No data to export"


class NotFoundError(BirthOrderError):
    status_code = 404
    public_message = "Submission not found"
