from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from incentives.schemas.incentive import IncentiveReport


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Input rejected before any mutation took place."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=422)


class LockedStateError(AppError):
    """Mutation attempted on a report whose status does not allow it."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class NotFoundError(AppError):
    """Referenced report, item or adjustment does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class SubmissionWindowError(AppError):
    """Submission attempted before the report's month has closed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class LedgerReconciliationError(AppError):
    """The hours-return dual update could not be completed as one unit.

    ``ledger_applied`` tells the caller which side is already committed. When
    it is true, ``pending_report`` holds the report that still has to be saved;
    retry that save only and never re-apply the ledger credit.
    """

    def __init__(
        self,
        message: str,
        *,
        ledger_applied: bool,
        pending_report: IncentiveReport | None = None,
    ) -> None:
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY)
        self.ledger_applied = ledger_applied
        self.pending_report = pending_report


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=422,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
