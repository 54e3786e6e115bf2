"""
Error Handling

Client-facing rejections (ApiError) and the outer middleware that
catches everything else.

Every error body has the shape {"error": "..."}, which the mobile
client already displays.
"""

import traceback
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from kokoro.config.logging_config import bind_correlation_id, clear_context, get_logger
from kokoro.infrastructure.monitoring import capture_exception_with_context

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class ApiError(Exception):
    """
    Request rejected with a client-facing message.

    Rendered as {"error": message} with the given status code.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render ApiError as the JSON error body clients expect."""
    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        reason=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Outermost request wrapper.

    Binds a correlation id for every log event of the request, echoes
    it in the response headers, and turns anything unhandled into a
    500 whose body names no internals. The exception goes to Sentry
    when it is enabled.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                traceback=traceback.format_exc(),
            )
            capture_exception_with_context(e, correlation_id, {"path": request.url.path})
            response = JSONResponse(
                status_code=500,
                content={
                    "error": "Something went wrong on our side. Please try again.",
                    "correlation_id": correlation_id,
                },
            )
        finally:
            clear_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
