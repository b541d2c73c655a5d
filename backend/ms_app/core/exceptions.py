"""
Standardized exception handling for ms_app
Error types, JSON formatting and FastAPI handlers shared by all endpoints
"""

import logging
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories, each mapped to one HTTP status"""
    VALIDATION = "validation"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DATABASE_UNAVAILABLE = "database_unavailable"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorDetails(BaseModel):
    """Standardized error details structure"""
    code: str
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    timestamp: datetime
    request_id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    recoverable: bool = True
    retry_after_seconds: Optional[int] = None


class ServiceException(Exception):
    """
    Base exception class for all ms_app errors
    Carries standardized error information for API responses and logs
    """

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        recoverable: bool = True,
        retry_after_seconds: Optional[int] = None,
        request_id: Optional[str] = None
    ):
        super().__init__(message)
        self.details = ErrorDetails(
            code=code,
            message=message,
            category=category,
            severity=severity,
            timestamp=datetime.now(timezone.utc),
            request_id=request_id,
            context=context or {},
            suggestions=suggestions or [],
            recoverable=recoverable,
            retry_after_seconds=retry_after_seconds
        )

    @property
    def status_code(self) -> int:
        return _get_status_code_for_category(self.details.category)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": {
                "code": self.details.code,
                "message": self.details.message,
                "category": self.details.category.value,
                "severity": self.details.severity.value,
                "timestamp": self.details.timestamp.isoformat(),
                "request_id": self.details.request_id,
                "context": self.details.context,
                "suggestions": self.details.suggestions,
                "recoverable": self.details.recoverable,
                "retry_after_seconds": self.details.retry_after_seconds
            }
        }

    def to_log_dict(self) -> Dict[str, Any]:
        """Convert exception to structured logging format"""
        return {
            "error_code": self.details.code,
            "error_message": self.details.message,
            "error_category": self.details.category.value,
            "error_severity": self.details.severity.value,
            "request_id": self.details.request_id,
            "context": self.details.context,
            "recoverable": self.details.recoverable
        }


class ValidationException(ServiceException):
    """Raised when request input is missing or malformed"""

    def __init__(self, message: str, fields: List[str], **kwargs):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            context={"fields": fields},
            suggestions=["Provide non-empty name and email form fields"],
            recoverable=False,
            **kwargs
        )


class MethodNotAllowedException(ServiceException):
    """Raised when an endpoint is called with an unsupported HTTP method"""

    def __init__(self, method: str, allowed: List[str], **kwargs):
        super().__init__(
            message="Method not allowed",
            code="METHOD_NOT_ALLOWED",
            category=ErrorCategory.METHOD_NOT_ALLOWED,
            severity=ErrorSeverity.LOW,
            context={"method": method, "allowed": allowed},
            recoverable=False,
            **kwargs
        )
        self.allowed = allowed


class DuplicateRecordException(ServiceException):
    """Raised when an insert violates a uniqueness constraint"""

    def __init__(self, message: str, field: str, **kwargs):
        super().__init__(
            message=message,
            code="DUPLICATE_RECORD",
            category=ErrorCategory.CONFLICT,
            severity=ErrorSeverity.LOW,
            context={"field": field},
            suggestions=[f"Use a different {field}"],
            recoverable=False,
            **kwargs
        )


class DatabaseUnavailableException(ServiceException):
    """Raised when the store is not connected, unreachable or too slow"""

    def __init__(self, message: str = "Database not connected", operation: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="DATABASE_UNAVAILABLE",
            category=ErrorCategory.DATABASE_UNAVAILABLE,
            severity=ErrorSeverity.HIGH,
            context={"operation": operation},
            suggestions=[
                "Check database connectivity",
                "Check the load balancer backend status"
            ],
            retry_after_seconds=10,
            **kwargs
        )


class DatabaseException(ServiceException):
    """Raised when a database operation fails for any other reason"""

    def __init__(self, message: str, operation: str, table: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            category=ErrorCategory.DATABASE,
            severity=ErrorSeverity.HIGH,
            context={"operation": operation, "table": table},
            suggestions=[
                "Verify data integrity",
                "Review query parameters"
            ],
            **kwargs
        )


# Exception handlers for FastAPI

async def service_exception_handler(request: Request, exc: ServiceException) -> JSONResponse:
    """
    Global exception handler for ms_app exceptions
    """
    logger = logging.getLogger("exception_handler")

    if exc.details.request_id is None:
        exc.details.request_id = getattr(request.state, "request_id", None)

    status_code = exc.status_code
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{exc.details.code} on {request.method} {request.url.path}: {exc.details.message}",
        extra=exc.to_log_dict()
    )

    headers = _get_error_headers(exc.details)
    if isinstance(exc, MethodNotAllowedException):
        headers["Allow"] = ", ".join(exc.allowed)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
        headers=headers
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handler for standard HTTP exceptions, converting them to the ms_app format
    """
    service_exc = ServiceException(
        message=str(exc.detail),
        code="HTTP_ERROR",
        category=_get_category_for_status(exc.status_code),
        severity=_get_severity_for_status(exc.status_code),
        context={"status_code": exc.status_code, "path": request.url.path},
        request_id=getattr(request.state, "request_id", None)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=service_exc.to_dict(),
        headers=getattr(exc, "headers", None)
    )


# Utility functions

def _get_status_code_for_category(category: ErrorCategory) -> int:
    """Map error categories to HTTP status codes"""
    category_status_map = {
        ErrorCategory.VALIDATION: 400,
        ErrorCategory.NOT_FOUND: 404,
        ErrorCategory.METHOD_NOT_ALLOWED: 405,
        ErrorCategory.CONFLICT: 409,
        ErrorCategory.DATABASE_UNAVAILABLE: 503,
        ErrorCategory.DATABASE: 500,
        ErrorCategory.CONFIGURATION: 500,
        ErrorCategory.SYSTEM: 500
    }
    return category_status_map.get(category, 500)


def _get_category_for_status(status_code: int) -> ErrorCategory:
    """Map HTTP status codes to error categories"""
    status_category_map = {
        400: ErrorCategory.VALIDATION,
        404: ErrorCategory.NOT_FOUND,
        405: ErrorCategory.METHOD_NOT_ALLOWED,
        409: ErrorCategory.CONFLICT,
        422: ErrorCategory.VALIDATION,
        500: ErrorCategory.SYSTEM,
        503: ErrorCategory.DATABASE_UNAVAILABLE
    }
    return status_category_map.get(status_code, ErrorCategory.SYSTEM)


def _get_severity_for_status(status_code: int) -> ErrorSeverity:
    """Map HTTP status codes to error severities"""
    if status_code < 400:
        return ErrorSeverity.LOW
    elif status_code < 500:
        return ErrorSeverity.MEDIUM
    else:
        return ErrorSeverity.HIGH


def _get_error_headers(error_details: ErrorDetails) -> Dict[str, str]:
    """Generate headers for error responses"""
    headers = {
        "X-Error-Code": error_details.code,
        "X-Error-Category": error_details.category.value
    }

    if error_details.request_id:
        headers["X-Request-ID"] = error_details.request_id

    if error_details.retry_after_seconds:
        headers["Retry-After"] = str(error_details.retry_after_seconds)

    return headers
