import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from accident_gateway.utils.response import error_response

logger = logging.getLogger(__name__)


class AppException(Exception):
    def __init__(self, message: str, status_code: int = 400, filename: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.filename = filename


class UploadValidationError(AppException):
    """Missing file, disallowed MIME type or oversize upload."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UpstreamCallError(AppException):
    """The call to the vision model failed (network, auth, quota, provider error)."""

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, status_code=500, filename=filename)


class UpstreamTimeoutError(AppException):
    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, status_code=504, filename=filename)


class TransientStorageError(AppException):
    """The stored upload could not be read back."""

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, status_code=500, filename=filename)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__, request.method, request.url.path, exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, filename=exc.filename),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content=error_response(message))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_response(f"Internal server error: {exc}"),
        )
