# app/core/exceptions.py
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500
    default_code = "internal_error"
    retryable = False

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def user_message(self) -> str:
        return self.message


class ValidationError(AppError):
    """Malformed input caught before any external call."""
    status_code = 400
    default_code = "validation_error"


class NotFoundError(AppError):
    status_code = 404
    default_code = "not_found"


class StateTransitionError(AppError):
    """Requested status change is not allowed from the current state."""
    status_code = 409
    default_code = "invalid_transition"


class AwaitingPaymentError(StateTransitionError):
    default_code = "awaiting_payment"

    def __init__(self, message: str = "Campaign is awaiting payment"):
        super().__init__(message)


class ConfigurationError(AppError):
    """Processor credentials or backing store are not configured."""
    status_code = 503
    default_code = "service_unavailable"

    def user_message(self) -> str:
        return "Service unavailable. Please try again later."


class GatewayError(AppError):
    """The payment processor rejected the request or the card."""
    status_code = 402
    default_code = "processing_error"
    retryable = True

    def __init__(self, message: str, code: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message, code)
        self._user_message = user_message or message

    def user_message(self) -> str:
        return self._user_message


class PersistenceError(AppError):
    """Money moved at the processor but the record could not be written."""
    status_code = 500
    default_code = "recording_failed"

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference

    def user_message(self) -> str:
        text = "Payment succeeded but recording failed. Please contact support"
        if self.reference:
            text += f" quoting reference {self.reference}"
        return text + ". Do not pay again."


class NotificationError(AppError):
    """Email delivery failed. Never leaves the notification dispatcher."""
    default_code = "notification_failed"


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.user_message(),
                "code": exc.code,
                "retryable": exc.retryable,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": f"{field}: {message}" if field else message,
                "code": ValidationError.default_code,
                "retryable": False,
            },
        )
