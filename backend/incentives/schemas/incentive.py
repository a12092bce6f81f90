# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from incentives.models.enums import AdjustmentKind, ReportStatus

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class ReportRates(BaseModel):
    """Store-wide rate parameters set by the supervisor."""

    value_per_captacion: float | None = None
    value_per_mecanizacion: float | None = None
    value_per_extra_hour: float | None = None
    value_responsibility_bonus: float | None = None


class IncentiveAdjustment(BaseModel):
    """Ad-hoc bonus or deduction. Always positive; the owning list gives the sign."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    description: str
    amount: float


class IncentiveItem(BaseModel):
    """One employee's line in a monthly report.

    ``employee_name`` is a snapshot taken when the report was bootstrapped.
    ``total`` is a cache of the calculator output and is never authored.
    ``hours_return_ids`` lists the hours returns already applied to this item.
    """

    employee_id: str
    employee_name: str
    base_amount: float = 0.0
    pluses: list[IncentiveAdjustment] = Field(default_factory=list)
    deductions: list[IncentiveAdjustment] = Field(default_factory=list)
    micros_aptacion_qty: float = 0.0
    micros_mecanizacion_qty: float = 0.0
    hours_payment_qty: float = 0.0
    responsibility_bonus_amount: float = 0.0
    sick_days: int = 0
    hours_return_ids: list[str] = Field(default_factory=list)
    total: float = 0.0

    def adjustments(self, kind: AdjustmentKind) -> list[IncentiveAdjustment]:
        """Return the list backing the given adjustment kind."""
        return self.pluses if kind == AdjustmentKind.PLUS else self.deductions


class IncentiveReport(BaseModel):
    """A store's incentive report for one calendar month."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    establishment_id: str
    month: str = Field(pattern=MONTH_PATTERN)
    status: ReportStatus = ReportStatus.DRAFT
    items: list[IncentiveItem] = Field(default_factory=list)
    value_per_captacion: float | None = None
    value_per_mecanizacion: float | None = None
    value_per_extra_hour: float | None = None
    value_responsibility_bonus: float | None = None
    supervisor_notes: str | None = None
    manager_notes: str | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    updated_at: datetime

    @property
    def rates(self) -> ReportRates:
        return ReportRates(
            value_per_captacion=self.value_per_captacion,
            value_per_mecanizacion=self.value_per_mecanizacion,
            value_per_extra_hour=self.value_per_extra_hour,
            value_responsibility_bonus=self.value_responsibility_bonus,
        )

    def find_item(self, employee_id: str) -> IncentiveItem | None:
        for item in self.items:
            if item.employee_id == employee_id:
                return item
        return None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class AdjustmentPayload(BaseModel):
    """A new adjustment to append to an item."""

    kind: AdjustmentKind
    description: str = Field(max_length=1000)
    amount: float


class AdjustmentRemoval(BaseModel):
    """Reference to an existing adjustment to remove."""

    id: uuid.UUID
    kind: AdjustmentKind


class ItemEditPayload(BaseModel):
    """Field edits for a single item. ``None`` leaves a field untouched."""

    employee_id: str
    base_amount: float | None = None
    micros_aptacion_qty: float | None = None
    micros_mecanizacion_qty: float | None = None
    sick_days: int | None = None
    add_adjustments: list[AdjustmentPayload] = Field(default_factory=list)
    remove_adjustments: list[AdjustmentRemoval] = Field(default_factory=list)


class SaveReportPayload(BaseModel):
    """Request body for saving manager edits to a report."""

    items: list[ItemEditPayload] = Field(default_factory=list)
    manager_notes: str | None = Field(default=None, max_length=2000)


class DecisionPayload(BaseModel):
    """Request body for the supervisor's decision on a pending report."""

    status: ReportStatus
    supervisor_notes: str | None = Field(default=None, max_length=2000)


class ReturnHoursPayload(BaseModel):
    """Request body for returning paid hours to the employee's hours bank."""

    hours: float
    reason: str = Field(min_length=1, max_length=1000)
    return_id: str | None = Field(default=None, max_length=128)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class IncentiveReportResponse(IncentiveReport):
    """A report plus read-only derived fields."""

    is_locked: bool
    persisted: bool
    report_total: float


class ReportSummary(BaseModel):
    """Summary row for report listings."""

    id: uuid.UUID
    establishment_id: str
    month: str
    status: ReportStatus
    item_count: int
    report_total: float
    submitted_at: datetime | None
    approved_at: datetime | None
    updated_at: datetime


class ReportListResponse(BaseModel):
    """List of report summaries."""

    items: list[ReportSummary]
    total: int
