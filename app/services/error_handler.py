"""
Error handling service for consistent error response formatting and logging.
Every failure leaves the API as ``{"status": "error", "message", "code", "request_id"}``.
"""

from typing import Dict, Any, Optional, List
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from app.config import settings
from app.utils.exceptions import APIException, ValidationError
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """
    Service for handling and formatting errors consistently across the application.
    Provides structured error responses with appropriate logging and error codes.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None,
        stack: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format error response in a consistent structure.

        Args:
            error_code: Error code identifier
            message: Human-readable error message
            details: Optional field-level error information
            request_id: Request identifier for tracking
            stack: Traceback, only ever passed in development

        Returns:
            Formatted error response dictionary
        """
        response: Dict[str, Any] = {
            "status": "error",
            "message": message,
            "code": error_code,
            "request_id": request_id,
        }

        if details:
            response["details"] = details

        if stack:
            response["stack"] = stack

        return response

    @staticmethod
    def get_request_id(request: Optional[Request]) -> str:
        """Request id assigned by RequestContextMiddleware, or a fresh one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle custom API exceptions with structured response.

        Args:
            exception: API exception instance
            request: Optional FastAPI request object

        Returns:
            JSON response with formatted error
        """
        request_id = ErrorHandlerService.get_request_id(request)
        path = request.url.path if request else None

        if exception.status_code >= 500:
            logger.error(f"API Exception [{request_id}] {path}: {exception.error_code} - {exception.detail}")
        else:
            logger.warning(f"API Exception [{request_id}] {path}: {exception.error_code} - {exception.detail}")

        details = exception.field_errors if isinstance(exception, ValidationError) else None

        error_response = ErrorHandlerService.format_error_response(
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail,
            details=details,
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=exception.headers
        )

    @staticmethod
    def validation_details(errors) -> List[Dict[str, Any]]:
        """Flatten pydantic error entries into field/message pairs."""
        details = []
        for error in errors:
            location = [str(loc) for loc in error.get("loc", ()) if loc not in ("body", "query", "path", "form")]
            details.append({
                "field": ".".join(location) or None,
                "message": error.get("msg"),
                "type": error.get("type"),
            })
        return details

    @staticmethod
    def handle_validation_error(
        exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle FastAPI and pydantic validation errors with field details.

        Args:
            exception: RequestValidationError or pydantic ValidationError
            request: Optional FastAPI request object

        Returns:
            400 JSON response with validation error details
        """
        request_id = ErrorHandlerService.get_request_id(request)
        details = ErrorHandlerService.validation_details(exception.errors())

        logger.warning(
            f"Validation Error [{request_id}] {request.url.path if request else None}: "
            f"{len(details)} field errors"
        )

        message = details[0]["message"] if len(details) == 1 else "Request validation failed"
        error_response = ErrorHandlerService.format_error_response(
            error_code="VALIDATION_ERROR",
            message=message,
            details=details,
            request_id=request_id
        )

        return JSONResponse(status_code=400, content=error_response)

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle database errors.

        Integrity violations (duplicates, missing references) are reported as
        400 conflicts; everything else is a generic 500.
        """
        request_id = ErrorHandlerService.get_request_id(request)

        if isinstance(exception, IntegrityError):
            error_code = "CONFLICT"
            message = ErrorHandlerService._extract_constraint_info(exception) or "Data integrity constraint violation"
            status_code = 400
            logger.warning(f"Integrity Error [{request_id}]: {exception.orig}")
        else:
            error_code = "DATABASE_ERROR"
            message = "Database operation failed"
            status_code = 500
            logger.error(f"Database Error [{request_id}]: {exception}", exc_info=True)

        error_response = ErrorHandlerService.format_error_response(
            error_code=error_code,
            message=message,
            request_id=request_id
        )

        return JSONResponse(status_code=status_code, content=error_response)

    @staticmethod
    def handle_http_exception(
        exception: StarletteHTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Handle framework HTTP exceptions such as unknown routes and 405s."""
        request_id = ErrorHandlerService.get_request_id(request)

        logger.warning(f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}")

        error_response = ErrorHandlerService.format_error_response(
            error_code=f"HTTP_{exception.status_code}",
            message=str(exception.detail),
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle unexpected errors with a generic 500.
        The traceback is only exposed in development.
        """
        request_id = ErrorHandlerService.get_request_id(request)

        logger.error(
            f"Unexpected Error [{request_id}] {request.url.path if request else None}: "
            f"{type(exception).__name__} - {exception}",
            exc_info=exception
        )

        stack = None
        if settings.is_development:
            stack = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))

        error_response = ErrorHandlerService.format_error_response(
            error_code="INTERNAL_SERVER_ERROR",
            message="Server Error",
            request_id=request_id,
            stack=stack
        )

        return JSONResponse(status_code=500, content=error_response)

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        """
        Describe an integrity error without leaking database internals.

        Args:
            exception: SQLAlchemy integrity error

        Returns:
            Short description or None
        """
        error_msg = str(exception.orig).lower()

        if "unique" in error_msg:
            return "Duplicate value for unique field"
        if "foreign key" in error_msg:
            return "Referenced record does not exist"
        if "not null" in error_msg:
            return "Required field cannot be empty"
        if "check constraint" in error_msg:
            return "Value does not meet validation requirements"
        return None
