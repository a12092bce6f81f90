# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class HoursLedgerEntryResponse(BaseModel):
    """A single hours-bank ledger entry."""

    id: uuid.UUID
    employee_id: str
    entry_type: str
    amount_hours: float
    reason: str
    source_type: str
    source_id: str
    metadata_json: dict[str, Any] | None
    created_at: datetime


class HoursBalanceResponse(BaseModel):
    """An employee's hours-bank balance with recent ledger history."""

    employee_id: str
    balance_hours: float
    updated_at: datetime | None
    entries: list[HoursLedgerEntryResponse]
