"""HTTP middleware and error rendering."""

from kokoro.api.middleware.error_handler import (
    ApiError,
    ErrorHandlerMiddleware,
    api_error_handler,
)

__all__ = [
    "ApiError",
    "ErrorHandlerMiddleware",
    "api_error_handler",
]
