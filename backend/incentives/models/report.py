# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from incentives.models.base import TimestampMixin, UUIDBase
from incentives.models.enums import ReportStatus


class IncentiveReportRecord(UUIDBase, TimestampMixin, table=True):
    """Stored form of one store's monthly incentive report.

    Items are kept as a JSON document: the report is always read and written
    as a whole aggregate.
    """

    __tablename__ = "incentive_report"
    __table_args__ = (
        sa.UniqueConstraint("establishment_id", "month", name="uq_incentive_report_period"),
        sa.Index("ix_incentive_report_status", "status"),
    )

    establishment_id: str = Field(max_length=64, index=True)
    month: str = Field(max_length=7)
    status: str = Field(default=ReportStatus.DRAFT, max_length=50, sa_column_kwargs={"server_default": "draft"})
    value_per_captacion: float = Field(default=0.0)
    value_per_mecanizacion: float = Field(default=0.0)
    value_per_extra_hour: float = Field(default=0.0)
    value_responsibility_bonus: float | None = None
    supervisor_notes: str | None = None
    manager_notes: str | None = None
    submitted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    items_json: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)
    updated_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
