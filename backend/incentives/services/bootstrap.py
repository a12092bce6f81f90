"""Initial draft reports built from the store roster."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from incentives.models.enums import ReportStatus
from incentives.schemas.incentive import IncentiveItem, IncentiveReport
from incentives.services.period import first_day

if TYPE_CHECKING:
    from datetime import datetime

    from incentives.services.period import Clock
    from incentives.services.roster import EmployeeInfo, RosterService

logger = logging.getLogger(__name__)

_TERMINATION_EVENT = "terminated"


def is_eligible(employee: EmployeeInfo, month: str) -> bool:
    """Whether ``employee`` is owed an incentive line for ``month``.

    Active staff always are. Inactive staff are only when they were
    terminated on or after the first day of the month.
    """
    if employee.active:
        return True
    start = first_day(month)
    return any(
        event.type == _TERMINATION_EVENT and event.date.date() >= start for event in employee.history
    )


def build_draft_report(
    establishment_id: str,
    month: str,
    employees: list[EmployeeInfo],
    now: datetime,
) -> IncentiveReport:
    """Build an unsaved draft with one zeroed item per eligible employee."""
    items: list[IncentiveItem] = []
    seen: set[str] = set()
    for employee in employees:
        if employee.establishment_id != establishment_id or employee.id in seen:
            continue
        if not is_eligible(employee, month):
            continue
        seen.add(employee.id)
        items.append(IncentiveItem(employee_id=employee.id, employee_name=employee.name))

    return IncentiveReport(
        establishment_id=establishment_id,
        month=month,
        status=ReportStatus.DRAFT,
        items=items,
        updated_at=now,
    )


async def bootstrap_report(
    roster: RosterService,
    clock: Clock,
    establishment_id: str,
    month: str,
) -> IncentiveReport | None:
    """Create a draft for the current month; any other month gets no report."""
    if month != clock.current_month():
        logger.info("No report for %s/%s and month is not current; not bootstrapping", establishment_id, month)
        return None

    employees = await roster.list_employees(establishment_id)
    report = build_draft_report(establishment_id, month, employees, clock.now())
    logger.info("Bootstrapped draft report %s/%s with %d items", establishment_id, month, len(report.items))
    return report
