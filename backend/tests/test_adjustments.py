"""Tests for the adjustment ledger: adding and removing pluses and deductions."""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime

import pytest

from incentives.exceptions import LockedStateError, NotFoundError, ValidationError
from incentives.models.enums import AdjustmentKind, ReportStatus
from incentives.schemas.incentive import IncentiveItem, IncentiveReport
from incentives.services.adjustments import add_adjustment, remove_adjustment
from incentives.services.calculator import compute_total, recompute_report


def _report(status: ReportStatus = ReportStatus.DRAFT) -> IncentiveReport:
    report = IncentiveReport(
        establishment_id="1",
        month="2025-02",
        status=status,
        items=[
            IncentiveItem(employee_id="e1", employee_name="Ana", base_amount=100, micros_aptacion_qty=2),
            IncentiveItem(employee_id="e2", employee_name="Luis", base_amount=50),
        ],
        value_per_captacion=3,
        updated_at=datetime(2025, 2, 1, tzinfo=UTC),
    )
    return recompute_report(report)


def test_add_plus_appends_and_recomputes() -> None:
    report = _report()
    adjustment = add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", 25)

    item = report.items[0]
    assert item.pluses == [adjustment]
    assert item.deductions == []
    assert item.total == 100 + 6 + 25
    assert item.total == compute_total(item, report.rates)


def test_add_deduction_subtracts() -> None:
    report = _report()
    add_adjustment(report, "e1", AdjustmentKind.DEDUCTION, "Descuadre caja", 10)
    assert report.items[0].total == 96


def test_adjustment_ids_are_unique() -> None:
    report = _report()
    first = add_adjustment(report, "e1", AdjustmentKind.PLUS, "a", 1)
    second = add_adjustment(report, "e1", AdjustmentKind.PLUS, "a", 1)
    assert first.id != second.id


@pytest.mark.parametrize("amount", [0, -5, math.nan, math.inf, -math.inf])
def test_add_rejects_non_positive_or_non_finite_amount(amount: float) -> None:
    report = _report()
    before = report.model_copy(deep=True)
    with pytest.raises(ValidationError):
        add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", amount)
    assert report == before


@pytest.mark.parametrize("description", ["", "   "])
def test_add_rejects_blank_description(description: str) -> None:
    report = _report()
    with pytest.raises(ValidationError):
        add_adjustment(report, "e1", AdjustmentKind.DEDUCTION, description, 5)
    assert report.items[0].deductions == []


def test_add_then_remove_restores_item_exactly() -> None:
    report = _report()
    add_adjustment(report, "e1", AdjustmentKind.PLUS, "Existing", 7.5)
    before = report.items[0].model_copy(deep=True)

    adjustment = add_adjustment(report, "e1", AdjustmentKind.PLUS, "Temporary", 0.1)
    remove_adjustment(report, "e1", adjustment.id, AdjustmentKind.PLUS)

    assert report.items[0] == before


def test_remove_from_wrong_list_is_not_found() -> None:
    report = _report()
    adjustment = add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", 5)
    with pytest.raises(NotFoundError):
        remove_adjustment(report, "e1", adjustment.id, AdjustmentKind.DEDUCTION)
    assert report.items[0].pluses == [adjustment]


def test_remove_unknown_id_is_not_found() -> None:
    report = _report()
    with pytest.raises(NotFoundError):
        remove_adjustment(report, "e1", uuid.uuid4(), AdjustmentKind.PLUS)


def test_unknown_employee_is_not_found() -> None:
    report = _report()
    with pytest.raises(NotFoundError):
        add_adjustment(report, "ghost", AdjustmentKind.PLUS, "Objetivo", 5)


@pytest.mark.parametrize(
    "status",
    [ReportStatus.PENDING_APPROVAL, ReportStatus.APPROVED, ReportStatus.REJECTED],
)
def test_locked_report_rejects_adjustments(status: ReportStatus) -> None:
    report = _report(status)
    with pytest.raises(LockedStateError):
        add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", 5)
    with pytest.raises(LockedStateError):
        remove_adjustment(report, "e1", uuid.uuid4(), AdjustmentKind.PLUS)


def test_changes_requested_report_is_editable() -> None:
    report = _report(ReportStatus.CHANGES_REQUESTED)
    add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", 5)
    assert len(report.items[0].pluses) == 1


def test_sibling_items_are_untouched() -> None:
    report = _report()
    sibling_before = report.items[1].model_copy(deep=True)
    add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", 5)
    with pytest.raises(ValidationError):
        add_adjustment(report, "e1", AdjustmentKind.PLUS, "Objetivo", -1)
    assert report.items[1] == sibling_before
