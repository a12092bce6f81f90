"""Bridge between report items and the external hours-debt ledger.

An item's ``hours_payment_qty`` is hours taken out of the employee's hours
bank and paid as incentive. Returning hours moves them back: the ledger is
credited first, then the report is saved. The two sides are never left
diverged without the caller being told which side committed.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlmodel import col

from incentives.exceptions import AppError, LedgerReconciliationError, ValidationError
from incentives.models.balance import HoursBalanceSnapshot
from incentives.models.base import utc_now
from incentives.models.enums import LedgerEntryType, LedgerSourceType
from incentives.models.ledger import HoursLedgerEntry
from incentives.schemas.hours import HoursLedgerEntryResponse
from incentives.services.calculator import recompute_item
from incentives.services.guards import ensure_mutable, ensure_non_negative, get_item_or_404, stamp

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from incentives.schemas.incentive import IncentiveItem, IncentiveReport
    from incentives.services.repository import ReportRepository

logger = logging.getLogger(__name__)


class LedgerCredit(BaseModel):
    """Result of a ledger credit. ``applied`` is False for an idempotent replay."""

    entry_id: uuid.UUID
    employee_id: str
    amount_hours: float
    balance_hours: float
    applied: bool


@runtime_checkable
class HoursLedgerService(Protocol):
    """Interface to the external hours-debt ledger."""

    async def get_balance(self, employee_id: str) -> float:
        """Current hours-bank balance. Positive means hours owed to the employee."""
        ...

    async def credit(
        self,
        employee_id: str,
        hours: float,
        reason: str,
        *,
        source_type: LedgerSourceType,
        source_id: str,
    ) -> LedgerCredit:
        """Add ``hours`` to the balance. Replaying the same source is a no-op."""
        ...

    async def history(self, employee_id: str, limit: int = 50) -> list[HoursLedgerEntryResponse]:
        """Most recent ledger entries first."""
        ...


class InMemoryHoursLedger:
    """In-memory stub implementation for development and tests."""

    def __init__(self) -> None:
        self._balances: dict[str, float] = {}
        self._entries: list[HoursLedgerEntryResponse] = []

    def seed_balance(self, employee_id: str, hours: float) -> None:
        """Seed a starting balance for testing."""
        self._balances[employee_id] = hours

    async def get_balance(self, employee_id: str) -> float:
        return self._balances.get(employee_id, 0.0)

    async def credit(
        self,
        employee_id: str,
        hours: float,
        reason: str,
        *,
        source_type: LedgerSourceType,
        source_id: str,
    ) -> LedgerCredit:
        for entry in self._entries:
            if (entry.source_type, entry.source_id, entry.entry_type) == (
                source_type.value,
                source_id,
                LedgerEntryType.CREDIT.value,
            ):
                return LedgerCredit(
                    entry_id=entry.id,
                    employee_id=entry.employee_id,
                    amount_hours=entry.amount_hours,
                    balance_hours=self._balances.get(entry.employee_id, 0.0),
                    applied=False,
                )

        entry = HoursLedgerEntryResponse(
            id=uuid.uuid4(),
            employee_id=employee_id,
            entry_type=LedgerEntryType.CREDIT.value,
            amount_hours=hours,
            reason=reason,
            source_type=source_type.value,
            source_id=source_id,
            metadata_json=None,
            created_at=utc_now(),
        )
        self._entries.append(entry)
        self._balances[employee_id] = self._balances.get(employee_id, 0.0) + hours
        return LedgerCredit(
            entry_id=entry.id,
            employee_id=employee_id,
            amount_hours=hours,
            balance_hours=self._balances[employee_id],
            applied=True,
        )

    async def history(self, employee_id: str, limit: int = 50) -> list[HoursLedgerEntryResponse]:
        entries = [e for e in self._entries if e.employee_id == employee_id]
        return list(reversed(entries))[:limit]


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------


def _build_entry_response(entry: HoursLedgerEntry) -> HoursLedgerEntryResponse:
    """Map a ledger entry model to its response schema."""
    return HoursLedgerEntryResponse(
        id=entry.id,
        employee_id=entry.employee_id,
        entry_type=entry.entry_type,
        amount_hours=entry.amount_hours,
        reason=entry.reason,
        source_type=entry.source_type,
        source_id=entry.source_id,
        metadata_json=entry.metadata_json,
        created_at=entry.created_at,
    )


class SqlHoursLedger:
    """Ledger backed by ``hours_ledger_entry`` plus a derived balance snapshot."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _compute_balance_from_ledger(self, employee_id: str) -> float:
        """Recompute the balance from ledger entries when no snapshot exists."""
        result = await self._session.execute(
            select(func.coalesce(func.sum(col(HoursLedgerEntry.amount_hours)), 0.0)).where(
                col(HoursLedgerEntry.employee_id) == employee_id
            )
        )
        return float(result.scalar_one())

    async def _get_or_create_snapshot_for_update(self, employee_id: str) -> HoursBalanceSnapshot:
        """Get the balance snapshot with a FOR UPDATE lock, creating it if absent."""
        result = await self._session.execute(
            select(HoursBalanceSnapshot)
            .where(col(HoursBalanceSnapshot.employee_id) == employee_id)
            .with_for_update()
        )
        snapshot = result.scalar_one_or_none()
        if snapshot is None:
            balance = await self._compute_balance_from_ledger(employee_id)
            snapshot = HoursBalanceSnapshot(employee_id=employee_id, balance_hours=balance, version=1)
            self._session.add(snapshot)
            await self._session.flush()
        return snapshot

    async def get_balance(self, employee_id: str) -> float:
        result = await self._session.execute(
            select(HoursBalanceSnapshot).where(col(HoursBalanceSnapshot.employee_id) == employee_id)
        )
        snapshot = result.scalar_one_or_none()
        if snapshot is not None:
            return snapshot.balance_hours
        return await self._compute_balance_from_ledger(employee_id)

    async def credit(
        self,
        employee_id: str,
        hours: float,
        reason: str,
        *,
        source_type: LedgerSourceType,
        source_id: str,
    ) -> LedgerCredit:
        """Insert a CREDIT entry and bump the snapshot in one transaction.

        1. Look up an existing entry for the same source (idempotency).
        2. Lock snapshot.
        3. Insert CREDIT entry (+hours).
        4. Update snapshot.
        5. Commit.
        """
        existing_result = await self._session.execute(
            select(HoursLedgerEntry).where(
                col(HoursLedgerEntry.source_type) == source_type.value,
                col(HoursLedgerEntry.source_id) == source_id,
                col(HoursLedgerEntry.entry_type) == LedgerEntryType.CREDIT.value,
            )
        )
        existing = existing_result.scalar_one_or_none()
        if existing is not None:
            return LedgerCredit(
                entry_id=existing.id,
                employee_id=existing.employee_id,
                amount_hours=existing.amount_hours,
                balance_hours=await self.get_balance(existing.employee_id),
                applied=False,
            )

        snapshot = await self._get_or_create_snapshot_for_update(employee_id)

        entry = HoursLedgerEntry(
            employee_id=employee_id,
            entry_type=LedgerEntryType.CREDIT.value,
            amount_hours=hours,
            reason=reason,
            source_type=source_type.value,
            source_id=source_id,
        )
        self._session.add(entry)

        snapshot.balance_hours += hours
        snapshot.version += 1

        try:
            await self._session.flush()
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return LedgerCredit(
            entry_id=entry.id,
            employee_id=employee_id,
            amount_hours=hours,
            balance_hours=snapshot.balance_hours,
            applied=True,
        )

    async def history(self, employee_id: str, limit: int = 50) -> list[HoursLedgerEntryResponse]:
        result = await self._session.execute(
            select(HoursLedgerEntry)
            .where(col(HoursLedgerEntry.employee_id) == employee_id)
            .order_by(col(HoursLedgerEntry.created_at).desc())
            .limit(limit)
        )
        return [_build_entry_response(e) for e in result.scalars().all()]


# ---------------------------------------------------------------------------
# Bridge operations
# ---------------------------------------------------------------------------


def allocate_hours(
    report: IncentiveReport,
    employee_id: str,
    qty: float,
    reason: str,
    now: datetime,
) -> IncentiveItem:
    """Store the hours quantity charged into an item by the payroll conversion step.

    The ledger debit belongs to that external step; only the item is touched here.
    """
    ensure_mutable(report)
    item = get_item_or_404(report, employee_id)
    item.hours_payment_qty = ensure_non_negative(qty, "hours_payment_qty")
    recompute_item(item, report.rates)
    stamp(report, now)
    logger.info("Allocated %.2fh to %s in report %s: %s", qty, employee_id, report.id, reason)
    return item


async def return_hours(
    report: IncentiveReport,
    employee_id: str,
    qty: float,
    reason: str,
    *,
    ledger: HoursLedgerService,
    repository: ReportRepository,
    now: datetime,
    return_id: str | None = None,
) -> IncentiveReport:
    """Move ``qty`` paid hours back to the employee's hours bank.

    ``report`` is the committed aggregate and is not modified; the saved
    report is returned. Passing the same ``return_id`` twice for an item never
    credits the ledger twice; reusing it for a different quantity is rejected.
    """
    ensure_mutable(report)
    item = get_item_or_404(report, employee_id)

    if return_id is not None and return_id in item.hours_return_ids:
        logger.info("Hours return %s already applied to %s; nothing to do", return_id, employee_id)
        return report

    if qty is None or not math.isfinite(qty) or qty <= 0:
        raise ValidationError("Hours to return must be a finite number greater than zero")
    if qty > item.hours_payment_qty:
        raise ValidationError(f"Cannot return {qty}h; only {item.hours_payment_qty}h were paid")
    if not reason or not reason.strip():
        raise ValidationError("A reason is required to return hours")

    # Ledger source ids are global; scope the caller's key to this report item.
    key = return_id or str(uuid.uuid4())
    source_id = f"{report.id}:{employee_id}:{key}"

    try:
        credit = await ledger.credit(
            employee_id,
            qty,
            reason.strip(),
            source_type=LedgerSourceType.INCENTIVE_RETURN,
            source_id=source_id,
        )
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Hours ledger credit failed for %s (source %s)", employee_id, source_id)
        raise LedgerReconciliationError(
            "Hours ledger update failed; the report was not changed",
            ledger_applied=False,
        ) from exc

    if not credit.applied and (credit.employee_id != employee_id or credit.amount_hours != qty):
        raise ValidationError(
            f"Return {key} was already credited as {credit.amount_hours}h to {credit.employee_id}; "
            f"it cannot be replayed as {qty}h to {employee_id}"
        )

    updated = report.model_copy(deep=True)
    target = get_item_or_404(updated, employee_id)
    target.hours_payment_qty -= qty
    target.hours_return_ids.append(key)
    recompute_item(target, updated.rates)
    stamp(updated, now)

    try:
        saved = await repository.put(updated)
    except Exception as exc:
        logger.exception("Report save failed after crediting %.2fh to %s (source %s)", qty, employee_id, source_id)
        raise LedgerReconciliationError(
            "Hours were credited to the ledger but the report could not be saved; retry the report save only",
            ledger_applied=True,
            pending_report=updated,
        ) from exc

    logger.info(
        "Returned %.2fh from %s in report %s (ledger balance %.2fh, replay=%s)",
        qty,
        employee_id,
        report.id,
        credit.balance_hours,
        not credit.applied,
    )
    return saved


async def retry_report_save(error: LedgerReconciliationError, repository: ReportRepository) -> IncentiveReport:
    """Re-save the report side of a half-completed hours return."""
    if not error.ledger_applied or error.pending_report is None:
        raise error
    return await repository.put(error.pending_report)
