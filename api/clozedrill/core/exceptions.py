"""
Custom exceptions for the application.
"""


class ClozeDrillException(Exception):
    """Base exception for all ClozeDrill application exceptions."""
    pass


class ValidationError(ClozeDrillException):
    """Raised when validation fails."""
    pass


class PersistenceError(ClozeDrillException):
    """Raised when the document store cannot be read or written."""
    pass


class ConflictError(ClozeDrillException):
    """Raised when an operation conflicts with the current state (e.g., a finished cycle)."""
    pass
