# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from incentives.models.base import UUIDBase, timestamp_field


class HoursLedgerEntry(UUIDBase, table=True):
    """Append-only entry recording every change to an employee's hours bank."""

    __tablename__ = "hours_ledger_entry"
    __table_args__ = (
        sa.UniqueConstraint("source_type", "source_id", "entry_type", name="uq_hours_ledger_idempotency"),
    )

    employee_id: str = Field(max_length=64, index=True)
    entry_type: str = Field(max_length=50)
    amount_hours: float
    reason: str = Field(max_length=1000)
    source_type: str = Field(max_length=50)
    source_id: str = Field(max_length=255)
    metadata_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = timestamp_field()
