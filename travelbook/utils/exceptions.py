"""
Custom exceptions for Travelbook business logic.

These exceptions provide more specific error handling than generic Exception,
allowing for better error messages and appropriate HTTP status codes.
"""


class TravelbookError(Exception):
    """Base exception for all Travelbook business logic errors."""

    def __init__(self, message: str, code: str = "TRAVELBOOK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TravelbookError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class RewardConfigValidationError(ValidationError):
    """
    One or more reward configuration fields are out of bounds.

    Carries every offending field path, not just the first one found.
    """

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        paths = ', '.join(sorted(self.errors))
        super().__init__(f"Invalid reward configuration: {paths}")
        self.code = "VALIDATION_ERROR"


class PersistenceError(TravelbookError):
    """Storage layer failure (connection loss, timeout, constraint failure)."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message, "DATABASE_ERROR")


class ConfigurationError(TravelbookError):
    """Application configuration error."""

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")
