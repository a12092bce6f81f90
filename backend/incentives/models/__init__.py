from sqlmodel import SQLModel

from incentives.models.audit import AuditLog
from incentives.models.balance import HoursBalanceSnapshot
from incentives.models.base import TimestampMixin, UUIDBase
from incentives.models.enums import (
    AdjustmentKind,
    AuditAction,
    AuditEntityType,
    LedgerEntryType,
    LedgerSourceType,
    ReportStatus,
)
from incentives.models.ledger import HoursLedgerEntry
from incentives.models.report import IncentiveReportRecord

__all__ = [
    "AdjustmentKind",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "HoursBalanceSnapshot",
    "HoursLedgerEntry",
    "IncentiveReportRecord",
    "LedgerEntryType",
    "LedgerSourceType",
    "ReportStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
