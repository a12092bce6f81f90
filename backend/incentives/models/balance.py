from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from incentives.models.base import utc_now


class HoursBalanceSnapshot(SQLModel, table=True):
    """Derived hours-bank balance, updated transactionally with ledger writes."""

    __tablename__ = "hours_balance_snapshot"

    employee_id: str = Field(primary_key=True, max_length=64)
    balance_hours: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
