"""Application exceptions and the handlers that turn them into JSON.

Every error leaves the API in one envelope:

    {"error": {"code": "INVOICE_NUMBER_CONFLICT",
               "message": "Invoice number MECH/DEC001 is already in use",
               "details": {...}}}

`details` is omitted when empty.  Unexpected exceptions are logged with
their traceback and answered with a generic 500.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class FinDeskException(Exception):
    """Base class for errors raised deliberately by FinDesk code."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(message)


class BusinessLogicError(FinDeskException):
    """A request that is well-formed but breaks a finance rule."""

    def __init__(self, message: str, error_code: str = "BUSINESS_LOGIC_ERROR"):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, error_code)


class ResourceNotFoundError(FinDeskException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found: {identifier}",
            status.HTTP_404_NOT_FOUND,
            "RESOURCE_NOT_FOUND",
        )


class InvoiceNumberConflictError(FinDeskException):
    """Invoice number already taken within its (type, month, year) scope."""

    def __init__(self, invoice_number: str, suggested: str | None = None):
        message = f"Invoice number {invoice_number} is already in use"
        if suggested:
            message += f"; next available is {suggested}"
        super().__init__(
            message,
            status.HTTP_409_CONFLICT,
            "INVOICE_NUMBER_CONFLICT",
            details={"invoice_number": invoice_number, "suggested": suggested},
        )


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | list | None = None,
) -> JSONResponse:
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body})


# ── Handlers ─────────────────────────────────────────────────

async def findesk_exception_handler(request: Request, exc: FinDeskException) -> JSONResponse:
    logger.warning(
        "%s %s -> %s: %s", request.method, request.url.path, exc.error_code, exc.message
    )
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> HTTP %d: %s", request.method, request.url.path,
                     exc.status_code, exc.detail)
    return error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.info("Validation failed on %s: %d error(s)", request.url.path, len(errors))
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Validation error",
        {"errors": errors},
    )


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations that slipped past the service-level checks."""
    detail = str(exc.orig).lower()
    logger.error("Integrity error on %s: %s", request.url.path, detail)

    if "uq_invoices_number_scope" in detail or "invoices.invoice_number" in detail:
        return error_response(
            status.HTTP_409_CONFLICT,
            "INVOICE_NUMBER_CONFLICT",
            "Invoice number is already in use for this month and entity",
        )
    if "unique" in detail or "duplicate" in detail:
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "DUPLICATE_RECORD",
            "A record with this value already exists",
        )
    if "foreign key" in detail:
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "FOREIGN_KEY_VIOLATION",
            "Referenced record does not exist",
        )
    if "not null" in detail:
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "NULL_VALUE_NOT_ALLOWED",
            "Required field is missing",
        )
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "INTEGRITY_ERROR", "Database constraint violation"
    )


async def operational_exception_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    logger.error("Database unavailable on %s: %s", request.url.path, exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DATABASE_UNAVAILABLE",
        "Database temporarily unavailable. Please try again.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred. Please try again later.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FinDeskException, findesk_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
