import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from validation import format_validation_errors

logger = logging.getLogger(__name__)

# Substrings the web client matches on to detect a logged-out session
NO_TOKEN = "Not authorized, no token"
TOKEN_FAILED = "Not authorized, token failed"
TOKEN_EXPIRED = "Not authorized, token expired"


# -----------------------------
# Error taxonomy
# -----------------------------
class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ApiError):
    status_code = 400


class DuplicateResourceError(ApiError):
    status_code = 400


class InvalidCredentialsError(ApiError):
    status_code = 400

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthError(ApiError):
    status_code = 401


class MissingTokenError(AuthError):
    def __init__(self, message: str = NO_TOKEN):
        super().__init__(message)


class InvalidTokenError(AuthError):
    def __init__(self, message: str = TOKEN_FAILED):
        super().__init__(message)


class ExpiredTokenError(AuthError):
    def __init__(self, message: str = TOKEN_EXPIRED):
        super().__init__(message)


class ForbiddenError(ApiError):
    status_code = 403

    def __init__(self, message: str = "Not authorized, insufficient role"):
        super().__init__(message)


class NotFoundError(ApiError):
    status_code = 404


# -----------------------------
# Central translation to {success, message}
# -----------------------------
def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    message, items = format_validation_errors(exc.errors())
    return JSONResponse(status_code=400, content=error_body(message, errors=items))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.info(f"Duplicate key on {request.method} {request.url.path}: {exc.details}")
    return JSONResponse(status_code=400, content=error_body("Duplicate field value entered"))


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body("Server Error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
