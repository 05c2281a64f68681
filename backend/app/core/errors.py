"""Tagged application errors and the JSON error body used by payment endpoints.

Every error is tagged with its kind at the point it is raised. Foreign
exceptions (Stripe, network, programming errors) are mapped onto the same
kinds by ``classify_exception`` using their type, never their message text.
"""

import traceback
from typing import Any, Dict, Optional

import stripe

from backend.app.core.settings import get_settings


class AppError(Exception):
    error_type = "SERVER_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class ValidationError(AppError):
    error_type = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(AppError):
    error_type = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class AuthError(AppError):
    error_type = "AUTH_ERROR"
    status_code = 401
    default_message = "Authentication required"


class PaymentError(AppError):
    error_type = "PAYMENT_ERROR"
    status_code = 400
    default_message = "Payment processing error. Please try again or contact support if the issue persists."


class ConfigError(AppError):
    error_type = "CONFIG_ERROR"
    status_code = 500
    default_message = "Payment system configuration error. Please contact support."


class GatewayTimeoutError(AppError):
    error_type = "TIMEOUT_ERROR"
    status_code = 504
    default_message = "Connection timeout. Please try again."


class ServerError(AppError):
    error_type = "SERVER_ERROR"
    status_code = 500


def classify_exception(exc: BaseException) -> AppError:
    """Map any exception onto exactly one tagged error."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, stripe.APIConnectionError):
        return GatewayTimeoutError()
    if isinstance(exc, stripe.AuthenticationError):
        return ConfigError()
    if isinstance(exc, stripe.StripeError):
        message = getattr(exc, "user_message", None) or str(exc)
        if message and len(message) < 200:
            return PaymentError(f"Payment processing error: {message}")
        return PaymentError()
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return GatewayTimeoutError()
    return ServerError()


def error_body(error: AppError, exc: Optional[BaseException] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error.message, "type": error.error_type}
    if get_settings().debug_errors:
        source = exc if exc is not None else error
        body["details"] = "".join(traceback.format_exception(type(source), source, source.__traceback__))
    return body
