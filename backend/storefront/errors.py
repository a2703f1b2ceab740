"""Error taxonomy shared by the API routes

Every error the API returns has the shape {"error": {"message", "code", "field"?}}
"""

from __future__ import annotations
import traceback
from typing import Any, Dict, Optional


class AppError(Exception):
    def __init__(self, message: str, code: str, status_code: int = 500, is_operational: bool = True):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.is_operational = is_operational


class ValidationError(AppError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "VALIDATION_ERROR", 400)
        self.field = field


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "NOT_FOUND", 404)


class RateLimitError(AppError):
    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        super().__init__(message, "RATE_LIMIT_EXCEEDED", 429)
        self.retry_after = retry_after


class ExternalServiceError(AppError):
    def __init__(self, message: str, service: str):
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", 503)
        self.service = service


class CatalogError(Exception):
    """Raised when the product catalog cannot be loaded or breaks an invariant"""


def _stack(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def format_error_response(error: BaseException, development: bool = False) -> Dict[str, Any]:
    """Build the JSON error body for any exception

    Internal details only leave the process in development
    """
    if isinstance(error, AppError):
        body: Dict[str, Any] = {"message": error.message, "code": error.code}
        if isinstance(error, ValidationError) and error.field:
            body["field"] = error.field
        if development:
            body["stack"] = _stack(error)
        return {"error": body}

    if not development:
        return {"error": {"message": "An unexpected error occurred", "code": "INTERNAL_ERROR"}}

    return {"error": {"message": str(error), "code": "INTERNAL_ERROR", "stack": _stack(error)}}
