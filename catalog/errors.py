"""
Error classes raised by the catalog core.
Each error carries the HTTP status code it is reported with.
"""

from typing import Any, Optional


class CatalogError(Exception):
    """Base class for classified catalog errors."""

    status_code: int = 500

    def __init__(self, message: str, errors: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(CatalogError):
    """A referenced entity (by id or descriptor) does not exist."""

    status_code = 404


class AlreadyExistsError(CatalogError):
    """An entity with identical defining fields is already stored."""

    status_code = 400


class InvalidDatesError(CatalogError):
    """Dates of an entity contradict each other."""

    status_code = 400
