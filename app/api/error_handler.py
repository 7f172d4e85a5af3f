# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
import re

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from domain.errors import (
    InvalidPipelineError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    WrongRequestError,
)
from domain.messages import DEFAULT_LANGUAGE, negotiate_language

logger = logging.getLogger(__name__)

# Order matters: the first matching type wins.
_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (ResourceAlreadyExistsError, status.HTTP_409_CONFLICT),
    (WrongRequestError, status.HTTP_400_BAD_REQUEST),
    (InvalidPipelineError, status.HTTP_400_BAD_REQUEST),
    (RequestValidationError, status.HTTP_400_BAD_REQUEST),
    (IntegrityError, status.HTTP_400_BAD_REQUEST),
    (ValueError, status.HTTP_400_BAD_REQUEST),
)

_DEFAULT_MESSAGES: dict[int, str] = {
    status.HTTP_404_NOT_FOUND: "The requested resource was not found.",
    status.HTTP_409_CONFLICT: "A conflict occurred with the current state of the resource.",
    status.HTTP_400_BAD_REQUEST: "Invalid request. Please check your input and try again.",
}


def resolve_http_status(exc: BaseException) -> int | None:
    """
    Classify an error into an HTTP status.

    Returns None for unknown (internal) errors, which must surface as 5xx.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return None


def localize_error(exc: BaseException, language: str = DEFAULT_LANGUAGE) -> str:
    """Return the user-facing message of a classified error in the given language."""
    localized = getattr(exc, "localized", None)
    if callable(localized):
        return localized(language)
    if isinstance(exc, IntegrityError):
        return "Database constraint violation. Please check your input."
    message = str(exc)
    if message:
        return message
    status_code = resolve_http_status(exc)
    return _DEFAULT_MESSAGES.get(status_code, "") if status_code else ""


def custom_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Centralized exception handler for FastAPI routes.
    Maps domain exceptions to appropriate HTTP status codes and returns consistent error responses.

    Args:
        request: The incoming request object.
        exc: The exception object.

    Returns:
        JSONResponse with appropriate status code and error message.
    """
    if isinstance(exc, RequestValidationError):
        return _handle_validation_error(request, exc)

    status_code = resolve_http_status(exc)
    if status_code is None:
        logger.error(
            f"Internal error for {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}",
            exc_info=exc,
        )
        message = "An internal server error occurred. Please try again later or contact support for assistance."
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": message})

    if isinstance(exc, IntegrityError):
        logger.error(f"Unhandled IntegrityError in endpoint: {exc}", exc_info=exc)
    else:
        logger.debug(
            f"Exception handler called: {request.method} {request.url.path} raised {type(exc).__name__}: {str(exc)}"
        )

    language = negotiate_language(request.headers.get("accept-language"))
    message = localize_error(exc, language) or _DEFAULT_MESSAGES[status_code]
    return JSONResponse(status_code=status_code, content={"detail": message})


def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with user-friendly messages.
    Returns 400 instead of 422 for better client handling.
    """
    logger.debug(f"Validation error for {request.method} {request.url.path}: {exc.errors()}")

    error_messages = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        error_type = error["type"]
        msg = error["msg"]

        if error_type == "missing":
            error_messages.append(f"Field '{field_path}' is required.")
        elif error_type in ("string_type", "int_type", "float_type", "bool_type", "bool_parsing"):
            error_messages.append(f"Field '{field_path}' has invalid type: {msg}")
        else:
            error_messages.append(f"Field '{field_path}': {msg}")

    detail = " ".join(error_messages) if error_messages else "Invalid request data."
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


def extract_constraint_name(error_msg: str) -> str | None:
    """
    Extract constraint name from SQLAlchemy IntegrityError message.

    Args:
        error_msg: The error message from exc.orig

    Returns:
        Constraint name if found, else None
    """
    error_msg = error_msg.lower()

    # try direct constraint name match
    for pattern in [
        r"constraint failed:\s*(\w+)\s*$",
        r"constraint\s*['\"](\w+)['\"]",
        r"constraint\s+(\w+)\s+failed",
    ]:
        match = re.search(pattern, error_msg)
        if match:
            return match.group(1)

    # try table.column format for implicit constraints
    match = re.search(r"(\w+)\.(\w+)", error_msg)
    if match:
        return f"{match.group(1)}_{match.group(2)}"

    return None
