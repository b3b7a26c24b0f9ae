"""Exceptions for the comp set ingestion boundary."""


class CompSetError(Exception):
    """Base exception for comp set mutations."""

    pass


class InvalidCompError(CompSetError):
    """Raised when a comp cannot be admitted or a field edit is not allowed."""

    pass


class CompNotFoundError(CompSetError):
    """Raised when an edit targets a comp id that is not in the set."""

    pass
