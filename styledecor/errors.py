import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every fault a handler maps to an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    category = "ServerError"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    category = "Unauthenticated"
    default_message = "Unauthorized access"


class InvalidCredential(Unauthenticated):
    category = "InvalidCredential"
    default_message = "Invalid or expired token"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    category = "Forbidden"
    default_message = "Forbidden access"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    category = "NotFound"
    default_message = "Resource not found"


class InvalidInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    category = "InvalidInput"
    default_message = "Invalid input"


class InvalidStatus(InvalidInput):
    category = "InvalidStatus"
    default_message = "Invalid status"


class InvalidAmount(InvalidInput):
    category = "InvalidAmount"
    default_message = "Invalid amount"


class ServerError(AppError):
    pass


class UpstreamError(AppError):
    """Payment processor unreachable, failing or short-circuited."""

    status_code = status.HTTP_502_BAD_GATEWAY
    category = "UpstreamError"
    default_message = "Payment processor unavailable"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


def _body(category: str, message: str, details=None) -> dict:
    body = {"error": category, "message": message}
    if details is not None:
        body["details"] = details
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.category, request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(exc.category, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_body(InvalidInput.category, "Invalid request", details),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body("HTTPError", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_body(ServerError.category, ServerError.default_message),
        )
