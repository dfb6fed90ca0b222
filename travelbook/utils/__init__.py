"""
Utility modules for Travelbook.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    bad_request,
    validation_failed,
    not_found,
    service_unavailable,
    internal_error
)
from .exceptions import (
    TravelbookError,
    ValidationError,
    RewardConfigValidationError,
    PersistenceError,
    ConfigurationError
)
