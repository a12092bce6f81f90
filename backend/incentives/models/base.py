"""Shared column definitions for the incentive tables."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Aware UTC timestamp used as the Python-side default for time columns."""
    return datetime.now(UTC)


def timestamp_field(*, index: bool = False) -> datetime:
    """A timezone-aware column defaulting to the current time on both sides."""
    return Field(  # type: ignore[no-any-return]
        default_factory=utc_now,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class UUIDBase(SQLModel):
    """Tables keyed by a random UUID."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Adds the row creation time."""

    created_at: datetime = timestamp_field()
