"""
Audit error taxonomy, boundary result container and HTTP exception handlers.
Audit errors never escape a tracking boundary; HTTP errors only serve the listing API.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

T = TypeVar("T")


# ── Audit errors ──────────────────────────────────────────────────────────────

class AuditError(Exception):
    """Base class for failures inside the tracking pipeline."""

    error_code = "AUDIT_ERROR"

    def __init__(self, detail: str, *, cause: BaseException | None = None) -> None:
        self.detail = detail
        self.cause = cause
        super().__init__(detail)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.detail}: {self.cause}"
        return self.detail


class ContextResolutionError(AuditError):
    error_code = "CONTEXT_RESOLUTION"


class PersistenceError(AuditError):
    error_code = "PERSISTENCE"


class SnapshotDecodeError(AuditError):
    error_code = "SNAPSHOT_DECODE"


class SweepError(AuditError):
    error_code = "SWEEP"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a tracking boundary call: either a value or an AuditError.
    Callers inspect ``ok`` and log the error themselves.
    """

    value: T | None = None
    error: AuditError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuditError) -> "Result[T]":
        return cls(error=error)


# ── HTTP exceptions ───────────────────────────────────────────────────────────

class TrackerException(Exception):
    """Base exception for all HTTP-facing tracker errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code or "TRACKER_ERROR"
        super().__init__(detail)


class NotFoundException(TrackerException):
    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        detail = f"{resource} not found"
        if resource_id:
            detail = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND",
        )


class BadRequestException(TrackerException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST",
        )


# ── Exception handlers ────────────────────────────────────────────────────────

def _error_response(status_code: int, detail: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "detail": detail,
        },
    )


async def tracker_exception_handler(
    request: Request, exc: TrackerException
) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, exc.error_code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "VALIDATION_ERROR",
            "detail": "Request validation failed",
            "errors": errors,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected internal server error occurred",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI application."""
    app.add_exception_handler(TrackerException, tracker_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
