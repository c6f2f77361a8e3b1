import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base error rendered as ``{"message", "code", ...details}``."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        result = {"message": self.message, "code": self.code}
        result.update(self.details)
        return result


class InputValidationError(MarketplaceError):
    status_code = 400
    code = "VALIDATION_ERROR"

    @classmethod
    def from_errors(cls, errors) -> "InputValidationError":
        """Build from pydantic error dicts, keeping only the first one."""
        if not errors:
            return cls("Invalid request data.")
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = str(first.get("msg", "Invalid request data.")).removeprefix("Value error, ")
        return cls(message, details={"field": field})


class AuthenticationError(MarketplaceError):
    status_code = 401
    code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Not authenticated.", **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class InvalidTokenError(AuthenticationError):
    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token.", **kwargs):
        super().__init__(message, **kwargs)


class ExpiredTokenError(AuthenticationError):
    code = "EXPIRED_TOKEN"

    def __init__(self, message: str = "Token has expired.", **kwargs):
        super().__init__(message, **kwargs)


class AuthorizationError(MarketplaceError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(MarketplaceError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(MarketplaceError):
    status_code = 409
    code = "CONFLICT"


class UnprocessableStateError(MarketplaceError):
    """Request is well-formed but the current state does not allow it."""

    status_code = 400
    code = "UNPROCESSABLE_STATE"


class UploadRejectedError(MarketplaceError):
    status_code = 400
    code = "UPLOAD_REJECTED"


# ---------------------------
# Exception handlers
# ---------------------------
async def marketplace_exception_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError | ValidationError,
) -> JSONResponse:
    error = InputValidationError.from_errors(exc.errors())
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail), "code": "HTTP_ERROR"},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error.", "code": "INTERNAL_ERROR"},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
