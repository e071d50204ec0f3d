"""
Application Exceptions
----------------------
Typed failures raised by services and the auth layer. Every exception carries
an HTTP status and a stable ``error_code``; the handlers registered on the
FastAPI app render them as ``{"message": ..., "errorCode": ...}``.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


# Shown for every authentication failure so callers cannot tell which check failed
AUTHENTICATION_FAILED_MESSAGE = "Invalid credentials. Please check your username/email and password."
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class TomeVaultError(Exception):
    """Base class for all application errors rendered to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response_body(self) -> Dict[str, Any]:
        return {"message": self.message, "errorCode": self.error_code}


# ============================================================================
# AUTHENTICATION
# ============================================================================


class InvalidCredentials(TomeVaultError):
    """Unknown identifier or wrong password."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "invalid_credentials"
    default_message = AUTHENTICATION_FAILED_MESSAGE


class AccountDisabled(InvalidCredentials):
    """Account is disabled, locked, expired or has expired credentials."""

    error_code = "account_disabled"


class AccountDeleted(InvalidCredentials):
    """Account has been soft-deleted."""

    error_code = "account_deleted"


class InvalidToken(TomeVaultError):
    """Bearer token is malformed, badly signed, from another issuer or outside its validity window."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "invalid_token"
    default_message = INVALID_TOKEN_MESSAGE


class Unauthenticated(TomeVaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthorized"
    default_message = "Authentication is required to access this resource"


# ============================================================================
# AUTHORIZATION & VALIDATION
# ============================================================================


class AccessDenied(TomeVaultError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "access_denied"
    default_message = "You do not have permission to perform this action"


class ResourceNotFound(TomeVaultError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "resource_not_found"
    default_message = "Resource not found"


class ValidationError(TomeVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"
    default_message = "Invalid request"


# ============================================================================
# LIBRARY
# ============================================================================


class BookAlreadyExists(TomeVaultError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "book_already_exists"
    default_message = "This book is already in your collection"


class BookPreviouslyDeleted(TomeVaultError):
    """The book exists in the collection but was soft-deleted; it can be reactivated."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "book_previously_deleted"
    default_message = "This book was previously removed from your collection"


class CatalogUnavailable(TomeVaultError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "catalog_unavailable"
    default_message = "The book catalog service is unavailable. Please try again later."


# ============================================================================
# RESPONSE RENDERING
# ============================================================================


def error_response(error: TomeVaultError) -> JSONResponse:
    """Render an application error as its JSON response."""
    headers = None
    if error.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response_body(),
        headers=headers,
    )


async def tomevault_error_handler(request: Request, exc: TomeVaultError) -> JSONResponse:
    logger.info(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}"
    )
    return error_response(exc)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Collapse pydantic validation errors into the uniform error body."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid value"))
        messages.append(f"{location}: {message}" if location else message)

    logger.info(f"{request.method} {request.url.path} -> 400 validation_error")
    return error_response(ValidationError("; ".join(messages) or None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}"
    )
    return error_response(TomeVaultError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TomeVaultError, tomevault_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
