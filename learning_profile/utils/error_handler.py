"""
Centralized error handling utilities
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional
import traceback

from learning_profile.utils.logger import logger
from learning_profile.config import settings


class AppException(Exception):
    """Base application exception"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found exception"""

    def __init__(self, resource: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier, **(details or {})}
        )


class ValidationError(AppException):
    """Validation error exception"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details=details or {}
        )


# Alias to avoid conflict with Pydantic's ValidationError
AppValidationError = ValidationError


class ConflictError(AppException):
    """Concurrent modification exception"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT",
            details=details or {}
        )


class UnauthorizedError(AppException):
    """Unauthorized access exception"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHORIZED"
        )


class InternalError(AppException):
    """Persistence or unexpected failure"""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_ERROR",
            details=details or {}
        )


def create_error_response(
    message: str,
    status_code: int,
    error_code: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> JSONResponse:
    """
    Create standardized error response

    Args:
        message: Error message
        status_code: HTTP status code
        error_code: Application error code
        details: Additional error details
        request_id: Request ID for tracking

    Returns:
        JSONResponse with error details
    """
    response_data = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message,
            "details": details or {}
        },
        "detail": message
    }

    if request_id:
        response_data["error"]["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=response_data
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions"""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    # Never expose partial state to the caller
    error_details = {"traceback": traceback.format_exc()} if settings.DEBUG else {}

    return create_error_response(
        message="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="INTERNAL_SERVER_ERROR",
        details=error_details,
        request_id=request_id
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for application exceptions"""
    request_id = getattr(request.state, "request_id", None)

    logger.warning(
        f"Application exception: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "status_code": exc.status_code
        }
    )

    return create_error_response(
        message=exc.message,
        status_code=exc.status_code,
        error_code=exc.error_code,
        details=exc.details,
        request_id=request_id
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for HTTP exceptions"""
    request_id = getattr(request.state, "request_id", None)

    return create_error_response(
        message=str(exc.detail),
        status_code=exc.status_code,
        error_code="HTTP_ERROR",
        request_id=request_id
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handler for request decoding errors, reported as client errors"""
    request_id = getattr(request.state, "request_id", None)

    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type")
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation error",
        extra={"request_id": request_id}
    )

    return create_error_response(
        message="Request validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code="VALIDATION_ERROR",
        details={"validation_errors": errors},
        request_id=request_id
    )
