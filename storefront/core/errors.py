import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, DatabaseError, OperationalError

logger = logging.getLogger(__name__)


def parse_exception_to_error_detail(e: Exception, context: str = "") -> dict:
    """
    Parse exception into structured error detail dictionary.

    Args:
        e: The exception raised inside a route handler
        context: Fallback message for unexpected errors, e.g. "Failed to create state"

    Returns:
        dict: Error detail with error, message, type and suggestion keys
    """
    if isinstance(e, IntegrityError):
        error_msg = str(e.orig).lower() if hasattr(e, "orig") else str(e).lower()

        if "unique constraint" in error_msg or "duplicate key" in error_msg or "unique" in error_msg:
            return {
                "error": "DuplicateEntryError",
                "message": "A record with the same unique value already exists",
                "type": "duplicate_constraint",
                "suggestion": "Please use a different value",
            }
        elif "not null" in error_msg:
            return {
                "error": "MissingRequiredFieldError",
                "message": "Required fields are missing",
                "type": "missing_field",
                "suggestion": "Please ensure all required fields are provided",
            }
        elif "foreign key" in error_msg:
            return {
                "error": "ForeignKeyError",
                "message": "Referenced record does not exist",
                "type": "foreign_key_constraint",
                "suggestion": "Please verify the referenced ids",
            }
        return {
            "error": "IntegrityError",
            "message": "Data integrity constraint violated",
            "type": "integrity_constraint",
            "suggestion": "Please verify your data and try again",
        }

    elif isinstance(e, OperationalError):
        return {
            "error": "DatabaseConnectionError",
            "message": "Unable to connect to the database",
            "type": "database_connection",
            "suggestion": "Please try again later",
        }

    elif isinstance(e, DatabaseError):
        return {
            "error": "DatabaseError",
            "message": context or "A database error occurred",
            "type": "database_error",
            "suggestion": "Please verify your data and try again",
        }

    return {
        "error": "UnexpectedError",
        "message": context or "An unexpected error occurred",
        "type": "internal_error",
        "suggestion": "Please try again or contact support",
    }


def bad_request(message: str, **extra) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "ValidationError", "message": message, "type": "validation_error", **extra},
    )


def not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "NotFoundError", "message": message, "type": "resource_not_found"},
    )


def conflict(message: str, field: Optional[str] = None) -> HTTPException:
    detail = {"error": "DuplicateEntryError", "message": message, "type": "duplicate_constraint"}
    if field:
        detail["field"] = field
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def server_error(e: Exception, context: str) -> HTTPException:
    """Map an unexpected exception to 503 (database down) or 500."""
    code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if isinstance(e, OperationalError)
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return HTTPException(status_code=code, detail=parse_exception_to_error_detail(e, context))


def first_validation_message(errors: list) -> str:
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = str(error.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
    if location and error.get("type") != "value_error":
        return f"{'.'.join(location)}: {message}"
    return message


def validation_exception(e: ValidationError) -> HTTPException:
    return bad_request(first_validation_message(e.errors()))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = dict(exc.detail)
        content.setdefault("message", "Request failed")
    else:
        content = {"message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = first_validation_message(exc.errors())
    logger.warning(f"Request validation failed on {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "ValidationError", "message": message, "type": "validation_error"},
    )
