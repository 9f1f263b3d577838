"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable, Iterable

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from storefront.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def pydantic_error_details(
    errors: Iterable[dict[str, Any]],
    loc_prefix: tuple[str, ...] = (),
) -> list[dict[str, Any]]:
    """Reduce pydantic error entries to ``{loc, msg, type}`` details.

    Args:
        errors: Entries from ``ValidationError.errors()``.
        loc_prefix: Path prepended to every location.

    Returns:
        list: Error details for ``ErrorResponse``.
    """
    return [
        {
            "loc": [*loc_prefix, *(str(part) for part in err.get("loc", ()))] or None,
            "msg": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        }
        for err in errors
    ]


class APIError(Exception):
    """Base exception for API errors.

    Use this class to raise application-specific errors that should
    be returned to the client with a specific status code and message.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code to return.
            error_type: Error category/type for client handling.
            details: Optional additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, message: str = "Resource not found", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="not_found",
            details=details,
        )


class ValidationError(APIError):
    """Request validation error with one detail entry per invalid field."""

    def __init__(self, message: str = "Validation error", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_type="validation_error",
            details=details,
        )

    @classmethod
    def from_pydantic(
        cls,
        exc: PydanticValidationError,
        message: str = "Validation error",
        loc_prefix: tuple[str, ...] = (),
    ) -> "ValidationError":
        """Build from a pydantic ValidationError, one detail per failed field."""
        return cls(message, details=pydantic_error_details(exc.errors(), loc_prefix))

    @property
    def fields(self) -> dict[str, str]:
        """Map of field name to error message."""
        return {
            ".".join(str(part) for part in d["loc"]): d["msg"]
            for d in self.details or []
            if d.get("loc")
        }


class BadRequestError(APIError):
    """Malformed request error (e.g. a missing query parameter)."""

    def __init__(self, message: str = "Bad request", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_type="bad_request",
            details=details,
        )


class PersistenceError(APIError):
    """Store unavailable or constraint violation.

    The client only ever sees ``message``; ``cause`` is kept for logging.
    """

    def __init__(self, message: str = "Failed to save order", cause: str | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_type="persistence_error",
        )
        self.cause = cause


class NotificationError(Exception):
    """Email delivery failure. Logged by the dispatcher, never surfaced."""


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional error details.
        request_id: Optional request ID for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    error_response = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Middleware to catch and format all exceptions.

    Ensures consistent error response format across the application.
    Logs full stack traces for debugging while returning safe messages to clients.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        response = await call_next(request)
        return response

    except PersistenceError as e:
        logger.error(
            "Persistence error: %s (%s)",
            e.message,
            e.cause,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            request_id=request_id,
        )

    except APIError as e:
        logger.warning(
            "API error: %s - %s",
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except Exception as e:
        # Unexpected exceptions - log full stack trace
        logger.error(
            "Unhandled exception: %s\n%s",
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI body/query validation errors into the uniform shape."""
    # Drop the leading "body"/"query" segment
    details = pydantic_error_details({**err, "loc": tuple(err.get("loc", ()))[1:]} for err in exc.errors())
    logger.warning("Request validation failed: %d error(s)", len(details))
    return create_error_response(
        error_type="validation_error",
        message="Invalid request",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=details,
        request_id=request.headers.get("X-Request-ID"),
    )
