"""Mutability predicate and shared guards for report mutations."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from incentives.exceptions import LockedStateError, NotFoundError, ValidationError
from incentives.models.enums import ReportStatus

if TYPE_CHECKING:
    from datetime import datetime

    from incentives.schemas.incentive import IncentiveItem, IncentiveReport

EDITABLE_STATUSES = frozenset({ReportStatus.DRAFT, ReportStatus.CHANGES_REQUESTED})
TERMINAL_STATUSES = frozenset({ReportStatus.APPROVED, ReportStatus.REJECTED})


def is_locked(status: ReportStatus | str) -> bool:
    """True when the manager may not edit a report in ``status``."""
    return ReportStatus(status) not in EDITABLE_STATUSES


def is_terminal(status: ReportStatus | str) -> bool:
    return ReportStatus(status) in TERMINAL_STATUSES


def ensure_mutable(report: IncentiveReport) -> None:
    """Raise LockedStateError unless the report is editable."""
    if is_locked(report.status):
        raise LockedStateError(
            f"Report {report.establishment_id}/{report.month} is {report.status} and cannot be edited"
        )


def get_item_or_404(report: IncentiveReport, employee_id: str) -> IncentiveItem:
    item = report.find_item(employee_id)
    if item is None:
        raise NotFoundError(
            f"Employee {employee_id} has no item in report {report.establishment_id}/{report.month}"
        )
    return item


def ensure_non_negative(value: float | None, field: str) -> float:
    """Reject missing, non-finite or negative numeric input."""
    if value is None or not math.isfinite(value) or value < 0:
        raise ValidationError(f"{field} must be a finite number, zero or greater")
    return value


def stamp(report: IncentiveReport, now: datetime) -> None:
    """Set ``updated_at`` without ever moving it backwards."""
    report.updated_at = max(now, report.updated_at)
