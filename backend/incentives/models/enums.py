from __future__ import annotations

import enum


class ReportStatus(enum.StrEnum):
    """State machine for monthly incentive reports."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


class AdjustmentKind(enum.StrEnum):
    """Which list an ad-hoc adjustment belongs to. The list carries the sign."""

    PLUS = "plus"
    DEDUCTION = "deduction"


class LedgerEntryType(enum.StrEnum):
    """Type of hours-bank ledger entry."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class LedgerSourceType(enum.StrEnum):
    """Origin of an hours-bank ledger entry."""

    INCENTIVE_RETURN = "INCENTIVE_RETURN"
    PAYROLL = "PAYROLL"
    ADMIN = "ADMIN"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    INCENTIVE_REPORT = "INCENTIVE_REPORT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
