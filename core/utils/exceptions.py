# Structured exception hierarchy for the Trade Pilot core

from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime, timezone


class ErrorCategory(str, Enum):
    """What the caller should do about an error"""
    CREDENTIALS = "credentials"    # Fix your credentials
    RETRY_LATER = "retry_later"    # Transient; caller may try again
    LOGGED_OUT = "logged_out"      # Session is gone; log in again
    REJECTED = "rejected"          # Business-rule rejection by the service
    INVALID_INPUT = "invalid_input"
    FATAL = "fatal"


class NetworkErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    DNS = "dns"


class TradePilotError(Exception):
    """Base exception for all Trade Pilot specific errors"""

    category: ErrorCategory = ErrorCategory.FATAL

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.correlation_id = correlation_id
        self.timestamp = datetime.now(timezone.utc)

    @property
    def retryable(self) -> bool:
        """Advisory only: the core never retries on its own"""
        return self.category is ErrorCategory.RETRY_LATER


# Transport / protocol errors
class NetworkError(TradePilotError):
    """Transport failure: timeout, refused connection, name resolution"""

    category = ErrorCategory.RETRY_LATER

    def __init__(self, message: str, kind: NetworkErrorKind = NetworkErrorKind.CONNECTION,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.kind = NetworkErrorKind(kind)


class ProtocolError(TradePilotError):
    """Malformed or unexpected response from the remote service"""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code

    @property
    def category(self) -> ErrorCategory:
        if self.status_code is not None and self.status_code >= 500:
            return ErrorCategory.RETRY_LATER
        return ErrorCategory.FATAL


# Authentication and Authorization Errors
class AuthenticationError(TradePilotError):
    """Login rejected - bad credentials"""

    category = ErrorCategory.CREDENTIALS

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class NotAuthorizedError(TradePilotError):
    """No session, or the session was rejected by the server"""

    category = ErrorCategory.LOGGED_OUT

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


# Order Management Errors
class TradeRejectedError(TradePilotError):
    """Order rejected by the service - should not be retried"""

    category = ErrorCategory.REJECTED

    def __init__(self, message: str, status_code: int, reason: Optional[str] = None,
                 order_data: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.reason = reason
        self.order_data = order_data or {}


# Validation Errors
class ValidationError(TradePilotError):
    """Caller-supplied input is malformed"""

    category = ErrorCategory.INVALID_INPUT

    def __init__(self, message: str, field: str, value: Any = None,
                 expected: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected


# Infrastructure Errors
class InferenceError(TradePilotError):
    """Model backend fault - not assumed transient"""

    def __init__(self, message: str, model: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.model = model


class StorageError(TradePilotError):
    """Secure session store unavailable"""

    def __init__(self, message: str, operation: str, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if the caller may reasonably try the operation again

    Returns:
        True if error is transient, False otherwise
    """
    if isinstance(error, TradePilotError):
        return error.retryable
    return False


def create_error_context(error: Exception, operation: str,
                         additional_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create structured error context for logging

    Args:
        error: The exception that occurred
        operation: The operation that failed
        additional_context: Additional context information

    Returns:
        Structured error context dictionary
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "retryable": is_retryable_error(error)
    }

    if isinstance(error, TradePilotError):
        context["category"] = error.category.value
        if error.correlation_id:
            context["correlation_id"] = error.correlation_id
        if error.details:
            context["error_details"] = error.details

        if isinstance(error, NetworkError):
            context["network_error_kind"] = error.kind.value

        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            context["status_code"] = status_code

        if isinstance(error, StorageError):
            context["storage_operation"] = error.operation

    if additional_context:
        context.update(additional_context)

    return context
