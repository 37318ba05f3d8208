"""Domain error taxonomy and the HTTP mapping for it.

Services and client-side flows raise these errors. The FastAPI app maps them
to the JSON envelope ``{"success": false, "message": ...}``.
"""

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION = "VALIDATION"
    SIZE_REQUIRED = "SIZE_REQUIRED"
    COLOR_REQUIRED = "COLOR_REQUIRED"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_CARD = "INVALID_CARD"
    NOT_FOUND = "NOT_FOUND"
    TRANSPORT = "TRANSPORT"
    BOOKING_TIMEOUT = "BOOKING_TIMEOUT"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"


class DomainError(Exception):
    """Base domain error with code, user-safe message and HTTP status."""

    code: ErrorCode = ErrorCode.VALIDATION
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """User input failed a precondition (selection, stock, card, billing)."""

    code = ErrorCode.VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DomainError):
    """Raised when an entity id has no backing record."""

    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class TransportError(DomainError):
    """Network or server failure; the message is passed through from HTTP."""

    code = ErrorCode.TRANSPORT
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.http_status = status_code


class BookingTimeoutError(DomainError):
    """The booking countdown elapsed before the session completed."""

    code = ErrorCode.BOOKING_TIMEOUT
    status_code = status.HTTP_408_REQUEST_TIMEOUT


class PaymentError(DomainError):
    """The payment gateway declined or failed the charge."""

    code = ErrorCode.PAYMENT_FAILED
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class AuthError(DomainError):
    """Missing, invalid or insufficient credentials."""

    code = ErrorCode.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, *, forbidden: bool = False) -> None:
        super().__init__(message)
        if forbidden:
            self.code = ErrorCode.FORBIDDEN
            self.status_code = status.HTTP_403_FORBIDDEN


def _envelope(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install handlers that render every failure in the API envelope.

      - DomainError            -> its own status_code
      - HTTPException          -> its status, detail as message
      - RequestValidationError -> 422 with the first field error as message
    """

    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        extra = {"code": exc.code.value}
        if exc.details:
            extra["items"] = exc.details
        return _envelope(exc.status_code, exc.message, **extra)

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        detail = exc.detail
        if isinstance(detail, dict):
            return _envelope(
                exc.status_code,
                str(detail.get("message", "Request failed")),
                **{k: v for k, v in detail.items() if k != "message"},
            )
        return _envelope(exc.status_code, str(detail))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request"
        return _envelope(
            422,
            message,
            errors=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
            ],
        )
