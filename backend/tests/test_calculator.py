"""Tests for the compensation calculator."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from incentives.schemas.incentive import IncentiveAdjustment, IncentiveItem, IncentiveReport, ReportRates
from incentives.services.calculator import (
    compute_total,
    recompute_report,
    report_total,
    responsibility_bonus,
)
from incentives.services.roster import EmployeeInfo


def _item(**fields: object) -> IncentiveItem:
    return IncentiveItem(employee_id="e1", employee_name="Ana", **fields)  # type: ignore[arg-type]


def test_worked_example() -> None:
    item = _item(
        base_amount=100,
        pluses=[IncentiveAdjustment(description="Ventas", amount=20)],
        deductions=[IncentiveAdjustment(description="Retraso", amount=5)],
        micros_aptacion_qty=3,
        hours_payment_qty=4,
        responsibility_bonus_amount=0,
    )
    rates = ReportRates(value_per_captacion=2, value_per_extra_hour=10)
    assert compute_total(item, rates) == 161


def test_missing_rates_count_as_zero() -> None:
    item = _item(base_amount=50, micros_aptacion_qty=7, micros_mecanizacion_qty=2, hours_payment_qty=3)
    assert compute_total(item, ReportRates()) == 50


def test_all_terms_contribute() -> None:
    item = _item(
        base_amount=10,
        pluses=[IncentiveAdjustment(description="a", amount=1), IncentiveAdjustment(description="b", amount=2)],
        deductions=[IncentiveAdjustment(description="c", amount=4)],
        micros_aptacion_qty=1,
        micros_mecanizacion_qty=2,
        hours_payment_qty=3,
        responsibility_bonus_amount=100,
    )
    rates = ReportRates(value_per_captacion=5, value_per_mecanizacion=7, value_per_extra_hour=11)
    assert compute_total(item, rates) == 10 + 3 - 4 + 5 + 14 + 33 + 100


def test_no_rounding_is_applied() -> None:
    item = _item(base_amount=0.333, micros_aptacion_qty=1)
    total = compute_total(item, ReportRates(value_per_captacion=0.001))
    assert total == pytest.approx(0.334)
    assert total != round(total, 2)


def test_compute_total_does_not_mutate_item() -> None:
    item = _item(base_amount=100, total=7)
    compute_total(item, ReportRates())
    assert item.total == 7


def test_recompute_report_refreshes_every_item() -> None:
    report = IncentiveReport(
        establishment_id="1",
        month="2025-02",
        items=[_item(base_amount=10, total=999), IncentiveItem(employee_id="e2", employee_name="Luis", base_amount=5)],
        value_per_captacion=2,
        updated_at=datetime(2025, 2, 1, tzinfo=UTC),
    )
    report.items[1].micros_aptacion_qty = 3
    recompute_report(report)
    assert [i.total for i in report.items] == [10, 11]
    assert report_total(report) == 21


# ---------------------------------------------------------------------------
# Responsibility bonus
# ---------------------------------------------------------------------------


def _employee(category: str, weekly_hours: float = 40) -> EmployeeInfo:
    return EmployeeInfo(id="e1", name="Ana", establishment_id="1", category=category, weekly_hours=weekly_hours)


def test_responsibility_bonus_full_time() -> None:
    assert responsibility_bonus(_employee("Gerente"), 120) == 120


def test_responsibility_bonus_prorated_by_weekly_hours() -> None:
    assert responsibility_bonus(_employee("Responsable", weekly_hours=30), 120) == 90


def test_responsibility_bonus_only_for_responsible_categories() -> None:
    assert responsibility_bonus(_employee("Empleado"), 120) == 0


def test_responsibility_bonus_without_value_or_employee() -> None:
    assert responsibility_bonus(_employee("Subgerente"), None) == 0
    assert responsibility_bonus(None, 120) == 0
