"""Compensation calculator.

Totals are never rounded here. Rounding to currency precision happens only
when a report is exported, so repeated edits cannot accumulate rounding drift.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from incentives.config import get_settings

if TYPE_CHECKING:
    from incentives.schemas.incentive import IncentiveItem, IncentiveReport, ReportRates
    from incentives.services.roster import EmployeeInfo


def _num(value: float | None) -> float:
    return value or 0.0


def compute_total(item: IncentiveItem, rates: ReportRates) -> float:
    """Compute an item's total from its fields and the report's rates. Pure."""
    pluses = sum(_num(adj.amount) for adj in item.pluses)
    deductions = sum(_num(adj.amount) for adj in item.deductions)
    return (
        _num(item.base_amount)
        + pluses
        - deductions
        + _num(item.micros_aptacion_qty) * _num(rates.value_per_captacion)
        + _num(item.micros_mecanizacion_qty) * _num(rates.value_per_mecanizacion)
        + _num(item.hours_payment_qty) * _num(rates.value_per_extra_hour)
        + _num(item.responsibility_bonus_amount)
    )


def recompute_item(item: IncentiveItem, rates: ReportRates) -> IncentiveItem:
    """Refresh the cached total on ``item`` and return it."""
    item.total = compute_total(item, rates)
    return item


def recompute_report(report: IncentiveReport) -> IncentiveReport:
    """Refresh the cached total of every item in ``report``."""
    rates = report.rates
    for item in report.items:
        recompute_item(item, rates)
    return report


def report_total(report: IncentiveReport) -> float:
    """Sum of all item totals."""
    return sum(item.total for item in report.items)


def responsibility_bonus(employee: EmployeeInfo | None, bonus_value: float | None) -> float:
    """Prorated responsibility bonus for one employee.

    Only employees in a responsible category receive it, scaled by their
    contracted weekly hours against a full-time week.
    """
    settings = get_settings()
    if employee is None or not bonus_value:
        return 0.0
    if employee.category not in settings.responsible_categories:
        return 0.0
    weekly_hours = employee.weekly_hours or settings.full_time_weekly_hours
    return bonus_value * weekly_hours / settings.full_time_weekly_hours
