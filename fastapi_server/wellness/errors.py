"""
Error types raised by the wellness services.

Each error carries an ErrorKind so route handlers and the application-level
exception handler can map it to a response without probing for fields.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DATA_ACCESS = "data_access"


class WellnessError(Exception):
    kind: ErrorKind = ErrorKind.DATA_ACCESS
    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(WellnessError):
    kind = ErrorKind.CONFIGURATION
    status_code = 500


class ValidationError(WellnessError):
    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, field: str, message: str, detail: Optional[str] = None):
        super().__init__(f"Invalid {field}: {message}", detail=detail)
        self.field = field


class NotFoundError(WellnessError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ConflictError(WellnessError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class DataAccessError(WellnessError):
    kind = ErrorKind.DATA_ACCESS
    status_code = 503
