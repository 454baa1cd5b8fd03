"""
Retrieval error handling utilities: classification for logs and metrics
"""

from enum import Enum
from typing import Tuple


class ErrorType(str, Enum):
    VALIDATION = "validation_error"
    NETWORK = "network_error"
    DATABASE = "database_error"
    PERMISSION = "permission_error"
    TIMEOUT = "timeout_error"
    UNKNOWN = "unknown_error"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


def classify_error(error: BaseException) -> Tuple[ErrorType, Severity, bool]:
    """Classify a store or retrieval failure.

    Looks at the error and, for wrapped errors, its cause.
    Returns: (error_type, severity, is_retryable)
    """
    message = str(error).lower()
    cause = error.__cause__
    if cause is not None:
        message = f"{message} {type(cause).__name__.lower()} {str(cause).lower()}"

    if any(k in message for k in ["timeout", "timed out", "deadline"]):
        return (ErrorType.TIMEOUT, Severity.WARNING, True)

    if any(k in message for k in ["permission", "denied", "not authorized", "row-level security"]):
        return (ErrorType.PERMISSION, Severity.CRITICAL, False)

    if any(k in message for k in ["connection", "network", "dns", "socket", "refused"]):
        return (ErrorType.NETWORK, Severity.WARNING, True)

    if any(k in message for k in ["invalid", "malformed", "syntax", "validation"]):
        return (ErrorType.VALIDATION, Severity.INFO, False)

    if any(k in message for k in ["database", "sqlalchemy", "deadlock", "operationalerror", "programmingerror"]):
        return (ErrorType.DATABASE, Severity.CRITICAL, True)

    return (ErrorType.UNKNOWN, Severity.WARNING, False)
