from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest
import sqlalchemy as sa
from pydantic import ValidationError as PydanticValidationError

from incentives.models import (
    AuditLog,
    HoursBalanceSnapshot,
    HoursLedgerEntry,
    IncentiveReportRecord,
    SQLModel,
)
from incentives.models.enums import AdjustmentKind, ReportStatus
from incentives.schemas.incentive import IncentiveAdjustment, IncentiveItem, IncentiveReport

EXPECTED_TABLES = {
    "audit_log",
    "hours_balance_snapshot",
    "hours_ledger_entry",
    "incentive_report",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_report_record_defaults() -> None:
    record = IncentiveReportRecord(establishment_id="1", month="2025-02", updated_at=datetime.now(UTC))
    assert record.status == ReportStatus.DRAFT
    assert record.items_json == []
    assert record.version == 1
    assert record.id is not None


def test_report_period_is_unique() -> None:
    table = SQLModel.metadata.tables["incentive_report"]
    unique_sets = {
        tuple(c.name for c in constraint.columns)
        for constraint in table.constraints
        if isinstance(constraint, sa.UniqueConstraint)
    }
    assert ("establishment_id", "month") in unique_sets


def test_ledger_entry_instantiation() -> None:
    entry = HoursLedgerEntry(
        employee_id="e1",
        entry_type="CREDIT",
        amount_hours=1.5,
        reason="Devolución",
        source_type="INCENTIVE_RETURN",
        source_id="ret-1",
    )
    assert entry.created_at.tzinfo is not None
    assert entry.metadata_json is None


def test_balance_snapshot_instantiation() -> None:
    snapshot = HoursBalanceSnapshot(employee_id="e1")
    assert snapshot.balance_hours == 0.0
    assert snapshot.version == 1


def test_audit_log_instantiation() -> None:
    log = AuditLog(establishment_id="1", entity_type="INCENTIVE_REPORT", entity_id=uuid.uuid4(), action="CREATE")
    assert log.before_json is None


def test_report_rejects_malformed_month() -> None:
    with pytest.raises(PydanticValidationError):
        IncentiveReport(establishment_id="1", month="2025-2", updated_at=datetime.now(UTC))


def test_item_defaults_are_zeroed() -> None:
    item = IncentiveItem(employee_id="e1", employee_name="Ana")
    assert item.total == 0
    assert item.pluses == []
    assert item.hours_return_ids == []


def test_item_adjustments_selects_list() -> None:
    item = IncentiveItem(
        employee_id="e1",
        employee_name="Ana",
        pluses=[IncentiveAdjustment(description="a", amount=1)],
        deductions=[IncentiveAdjustment(description="b", amount=2)],
    )
    assert item.adjustments(AdjustmentKind.PLUS)[0].description == "a"
    assert item.adjustments(AdjustmentKind.DEDUCTION)[0].description == "b"


def test_report_find_item_and_rates() -> None:
    report = IncentiveReport(
        establishment_id="1",
        month="2025-02",
        items=[IncentiveItem(employee_id="e1", employee_name="Ana")],
        value_per_captacion=2,
        updated_at=datetime.now(UTC),
    )
    assert report.find_item("e1") is report.items[0]
    assert report.find_item("e2") is None
    assert report.rates.value_per_captacion == 2
    assert report.rates.value_per_extra_hour is None
