"""
Error taxonomy and HTTP error handling for DocLedger.

Every failure the registration and verification engine can report is a
DocLedgerError carrying a machine-readable `kind`. Callers branch on the
kind (or the class), never on the message text.

All HTTP errors are rendered with the same JSON structure:
    {"error": <kind>, "message": ..., "details": ..., "request_id": ...}
"""

import logging
import traceback
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# =============================================================================
# Error Kinds
# =============================================================================

class ErrorKind(str, Enum):
    """Machine-readable failure kinds."""
    INPUT_INVALID = "input_invalid"
    STORAGE_FAILURE = "storage_failure"
    LEDGER_UNAVAILABLE = "ledger_unavailable"
    METADATA_PERSIST_FAILURE = "metadata_persist_failure"
    METADATA_UNAVAILABLE = "metadata_unavailable"
    VERIFICATION_FAILURE = "verification_failure"
    NOT_FOUND = "not_found"


# =============================================================================
# Exceptions
# =============================================================================

class DocLedgerError(Exception):
    """Base exception for all DocLedger failures."""

    kind: ErrorKind = ErrorKind.VERIFICATION_FAILURE
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def error_code(self) -> str:
        return self.kind.value


class InputInvalid(DocLedgerError):
    """Malformed request: empty blob, unsupported type, bad identifier."""
    kind = ErrorKind.INPUT_INVALID
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class RegistrationError(DocLedgerError):
    """Base class for failures that abort a registration."""


class StorageFailure(RegistrationError):
    """Blob store unreachable or rejected the write."""
    kind = ErrorKind.STORAGE_FAILURE
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str = "Blob storage operation failed", details: list[dict] | None = None):
        super().__init__(message, details)


class LedgerUnavailable(DocLedgerError):
    """Ledger unreachable or rejected the call."""
    kind = ErrorKind.LEDGER_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Attestation ledger is unavailable", details: list[dict] | None = None):
        super().__init__(message, details)


class MetadataStoreError(DocLedgerError):
    """Metadata store unreachable or a query failed."""
    kind = ErrorKind.METADATA_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class MetadataPersistFailure(RegistrationError):
    """
    The final registration step failed. The stored blob and any ledger
    attestation are left behind as orphans; nothing compensates them.
    """
    kind = ErrorKind.METADATA_PERSIST_FAILURE
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "Failed to persist document record",
        locator: Optional[str] = None,
        attestation_id: Optional[str] = None,
    ):
        self.locator = locator
        self.attestation_id = attestation_id
        super().__init__(message)


class VerificationFailure(DocLedgerError):
    """
    A backing source could not be consulted during verification.

    `source` is "metadata" or "ledger"; the underlying error is chained as
    __cause__. Distinct from a not_found outcome.
    """
    kind = ErrorKind.VERIFICATION_FAILURE
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, source: str, cause: Exception):
        self.source = source
        self.cause = cause
        super().__init__(
            f"Verification could not consult the {source} source: {cause}",
            details=[{"source": source}],
        )


class NotFoundError(DocLedgerError):
    """Resource not found (HTTP lookups; not a verification outcome)."""
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)


# =============================================================================
# Exception Handlers
# =============================================================================

def get_request_id(request: Request) -> Optional[str]:
    """Request id assigned by the logging middleware, else the client's header."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-Id")


async def docledger_error_handler(request: Request, exc: DocLedgerError) -> JSONResponse:
    """Handle DocLedger exceptions."""
    logger.warning(
        "DocLedgerError: %s - %s",
        exc.error_code,
        exc.message,
        extra={"error_code": exc.error_code, "path": request.url.path},
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
            "request_id": get_request_id(request),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle standard HTTP exceptions."""
    error_codes = {
        400: "bad_request",
        401: "authentication_required",
        403: "permission_denied",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        422: "validation_error",
        500: "internal_error",
        502: "bad_gateway",
        503: "service_unavailable",
    }

    error_code = error_codes.get(exc.status_code, "error")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error_code,
            "message": str(exc.detail) if exc.detail else f"HTTP {exc.status_code}",
            "request_id": get_request_id(request),
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    details = []
    for error in exc.errors():
        details.append({
            "loc": [str(part) for part in error.get("loc", [])],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        })

    logger.info(
        "Validation error on %s: %d issues",
        request.url.path,
        len(details),
    )

    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": details,
            "request_id": get_request_id(request),
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unhandled exception on %s: %s",
        request.url.path,
        str(exc),
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "request_id": get_request_id(request),
        },
    )


# =============================================================================
# Setup Function
# =============================================================================

def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(DocLedgerError, docledger_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "ErrorKind",
    "DocLedgerError",
    "InputInvalid",
    "RegistrationError",
    "StorageFailure",
    "LedgerUnavailable",
    "MetadataStoreError",
    "MetadataPersistFailure",
    "VerificationFailure",
    "NotFoundError",
    "setup_exception_handlers",
]
