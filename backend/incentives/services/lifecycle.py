"""Report lifecycle: who may change a report, and when.

The manager edits a private deep copy of the committed report through a
``ReportEditor``; nothing reaches storage until ``save`` or ``submit``.
``cancel`` drops the copy. Supervisor operations and hours returns work on
the committed aggregate and persist immediately.

    draft ──submit──▶ pending_approval ──decide──▶ approved | rejected
      ▲                                   │
      └──────── changes_requested ◀───────┘
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Literal

from incentives.exceptions import (
    LockedStateError,
    NotFoundError,
    SubmissionWindowError,
    ValidationError,
)
from incentives.models.enums import ReportStatus
from incentives.services import adjustments, hours
from incentives.services.bootstrap import bootstrap_report
from incentives.services.calculator import recompute_item, recompute_report, responsibility_bonus
from incentives.services.guards import (
    ensure_mutable,
    ensure_non_negative,
    get_item_or_404,
    is_locked,
    is_terminal,
    stamp,
)
from incentives.services.outcomes import LoggingOutcomeSink, Outcome
from incentives.services.period import is_closed

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterator

    from incentives.models.enums import AdjustmentKind
    from incentives.schemas.incentive import IncentiveAdjustment, IncentiveItem, IncentiveReport, ReportRates
    from incentives.services.hours import HoursLedgerService
    from incentives.services.outcomes import OutcomeSink
    from incentives.services.period import Clock
    from incentives.services.repository import ReportRepository
    from incentives.services.roster import RosterService

logger = logging.getLogger(__name__)

MicroField = Literal["micros_aptacion_qty", "micros_mecanizacion_qty"]

_DECISION_TARGETS = {
    ReportStatus.APPROVED: Outcome.APPROVED,
    ReportStatus.REJECTED: Outcome.REJECTED,
    ReportStatus.CHANGES_REQUESTED: Outcome.CHANGES_REQUESTED,
}


class ReportLifecycleManager:
    """Entry point for every report operation.

    Collaborators are passed in explicitly so that storage, the roster, the
    hours ledger and the clock can each be substituted.
    """

    def __init__(
        self,
        repository: ReportRepository,
        roster: RosterService,
        ledger: HoursLedgerService,
        clock: Clock,
        outcomes: OutcomeSink | None = None,
    ) -> None:
        self.repository = repository
        self.roster = roster
        self.ledger = ledger
        self.clock = clock
        self.outcomes = outcomes or LoggingOutcomeSink()

    @contextmanager
    def _rejections(self, report: IncentiveReport | None) -> Iterator[None]:
        """Emit ``rejected_validation`` for input the engine refuses, then re-raise."""
        try:
            yield
        except (ValidationError, SubmissionWindowError) as exc:
            self.outcomes.emit(Outcome.REJECTED_VALIDATION, report, exc.message)
            raise

    async def _get_committed_or_404(self, establishment_id: str, month: str) -> IncentiveReport:
        report = await self.repository.get(establishment_id, month)
        if report is None:
            raise NotFoundError(f"No incentive report for {establishment_id}/{month}")
        return report

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def open_report(self, establishment_id: str, month: str) -> ReportEditor | None:
        """Open an editing session on a period's report.

        Falls back to a bootstrapped draft for the current month. Returns None
        when there is no report and none may be created.
        """
        committed = await self.repository.get(establishment_id, month)
        persisted = committed is not None
        if committed is None:
            committed = await bootstrap_report(self.roster, self.clock, establishment_id, month)
        if committed is None:
            return None
        return ReportEditor(self, committed, persisted=persisted)

    async def list_reports(
        self,
        establishment_id: str | None = None,
        status: ReportStatus | None = None,
        year: int | None = None,
    ) -> list[IncentiveReport]:
        return await self.repository.list_reports(establishment_id, status, year)

    # -----------------------------------------------------------------------
    # Manager persistence
    # -----------------------------------------------------------------------

    async def save(self, editor: ReportEditor) -> IncentiveReport:
        """Persist the editor's working copy as the committed report."""
        ensure_mutable(editor.report)
        working = editor.report.model_copy(deep=True)
        stamp(working, self.clock.now())
        saved = await self.repository.put(working)
        editor._commit(saved)
        self.outcomes.emit(Outcome.SAVED, saved)
        logger.info("Saved report %s/%s", saved.establishment_id, saved.month)
        return saved

    async def submit(self, editor: ReportEditor) -> IncentiveReport:
        """Send the working copy for approval. Only closed months may be submitted."""
        report = editor.report
        if is_locked(report.status):
            raise LockedStateError(f"Report in status {report.status} cannot be submitted")

        with self._rejections(report):
            current_month = self.clock.current_month()
            if not is_closed(report.month, current_month):
                raise SubmissionWindowError(
                    f"Report for {report.month} cannot be submitted before the month has closed "
                    f"(current month is {current_month})"
                )

        now = self.clock.now()
        working = report.model_copy(deep=True)
        recompute_report(working)
        working.status = ReportStatus.PENDING_APPROVAL
        working.submitted_at = now
        stamp(working, now)
        saved = await self.repository.put(working)
        editor._commit(saved)
        self.outcomes.emit(Outcome.SUBMITTED, saved)
        logger.info("Submitted report %s/%s for approval", saved.establishment_id, saved.month)
        return saved

    # -----------------------------------------------------------------------
    # Supervisor operations
    # -----------------------------------------------------------------------

    async def decide(
        self,
        establishment_id: str,
        month: str,
        target: ReportStatus,
        supervisor_notes: str | None = None,
    ) -> IncentiveReport:
        """Apply the supervisor's decision to a pending report."""
        report = await self._get_committed_or_404(establishment_id, month)
        if report.status != ReportStatus.PENDING_APPROVAL:
            raise LockedStateError(f"Only pending reports can be decided; report is {report.status}")

        with self._rejections(report):
            if target not in _DECISION_TARGETS:
                raise ValidationError(f"Cannot move a pending report to {target}")
            notes = supervisor_notes.strip() if supervisor_notes else ""
            if target == ReportStatus.CHANGES_REQUESTED and not notes:
                raise ValidationError("Supervisor notes are required when requesting changes")

        now = self.clock.now()
        report.status = target
        if notes:
            report.supervisor_notes = notes
        if target == ReportStatus.APPROVED:
            report.approved_at = now
        stamp(report, now)
        saved = await self.repository.put(report)
        self.outcomes.emit(_DECISION_TARGETS[target], saved, notes or None)
        logger.info("Report %s/%s moved to %s", establishment_id, month, target)
        return saved

    async def configure_rates(self, establishment_id: str, month: str, rates: ReportRates) -> IncentiveReport:
        """Set the store-wide rates and revalue every item.

        Responsibility bonuses are re-derived from the roster each time.
        """
        report = await self._get_committed_or_404(establishment_id, month)
        if is_terminal(report.status):
            raise LockedStateError(f"Rates of a {report.status} report cannot change")

        with self._rejections(report):
            for field, value in rates.model_dump().items():
                if value is not None:
                    ensure_non_negative(value, field)

        report.value_per_captacion = rates.value_per_captacion
        report.value_per_mecanizacion = rates.value_per_mecanizacion
        report.value_per_extra_hour = rates.value_per_extra_hour
        report.value_responsibility_bonus = rates.value_responsibility_bonus

        for item in report.items:
            employee = await self.roster.get_employee(item.employee_id)
            item.responsibility_bonus_amount = responsibility_bonus(employee, rates.value_responsibility_bonus)
        recompute_report(report)
        stamp(report, self.clock.now())

        saved = await self.repository.put(report)
        self.outcomes.emit(Outcome.RATES_CONFIGURED, saved)
        return saved

    # -----------------------------------------------------------------------
    # Hours bridge
    # -----------------------------------------------------------------------

    async def return_hours(
        self,
        establishment_id: str,
        month: str,
        employee_id: str,
        qty: float,
        reason: str,
        return_id: str | None = None,
    ) -> IncentiveReport:
        """Return paid hours to the hours bank and persist the report at once."""
        report = await self._get_committed_or_404(establishment_id, month)
        with self._rejections(report):
            saved = await hours.return_hours(
                report,
                employee_id,
                qty,
                reason,
                ledger=self.ledger,
                repository=self.repository,
                now=self.clock.now(),
                return_id=return_id,
            )
        self.outcomes.emit(Outcome.RETURNED, saved, f"{employee_id}: {qty}h")
        return saved


class ReportEditor:
    """A manager's uncommitted working copy of one report.

    Every mutator checks the lock, recomputes the affected total and marks the
    editor dirty. ``report`` is always internally consistent.
    """

    def __init__(self, manager: ReportLifecycleManager, committed: IncentiveReport, *, persisted: bool) -> None:
        self._manager = manager
        self._committed = committed
        self.report = committed.model_copy(deep=True)
        self.persisted = persisted
        self.dirty = False

    @property
    def is_locked(self) -> bool:
        return is_locked(self.report.status)

    def _touch(self) -> None:
        stamp(self.report, self._manager.clock.now())
        self.dirty = True

    def _commit(self, saved: IncentiveReport) -> None:
        self._committed = saved
        self.report = saved.model_copy(deep=True)
        self.persisted = True
        self.dirty = False

    def _item(self, employee_id: str) -> IncentiveItem:
        ensure_mutable(self.report)
        return get_item_or_404(self.report, employee_id)

    def set_base_amount(self, employee_id: str, amount: float) -> IncentiveItem:
        item = self._item(employee_id)
        with self._manager._rejections(self.report):
            item.base_amount = ensure_non_negative(amount, "base_amount")
        recompute_item(item, self.report.rates)
        self._touch()
        return item

    def set_micro_qty(self, employee_id: str, field: MicroField, qty: float) -> IncentiveItem:
        item = self._item(employee_id)
        with self._manager._rejections(self.report):
            if field not in ("micros_aptacion_qty", "micros_mecanizacion_qty"):
                raise ValidationError(f"Unknown micro-incentive field {field}")
            setattr(item, field, ensure_non_negative(qty, field))
        recompute_item(item, self.report.rates)
        self._touch()
        return item

    def set_sick_days(self, employee_id: str, days: int) -> IncentiveItem:
        item = self._item(employee_id)
        with self._manager._rejections(self.report):
            item.sick_days = int(ensure_non_negative(days, "sick_days"))
        self._touch()
        return item

    def set_manager_notes(self, notes: str | None) -> None:
        ensure_mutable(self.report)
        self.report.manager_notes = notes.strip() if notes and notes.strip() else None
        self._touch()

    def allocate_hours(self, employee_id: str, qty: float, reason: str) -> IncentiveItem:
        with self._manager._rejections(self.report):
            item = hours.allocate_hours(self.report, employee_id, qty, reason, self._manager.clock.now())
        self.dirty = True
        return item

    def add_adjustment(
        self,
        employee_id: str,
        kind: AdjustmentKind,
        description: str,
        amount: float,
    ) -> IncentiveAdjustment:
        with self._manager._rejections(self.report):
            adjustment = adjustments.add_adjustment(self.report, employee_id, kind, description, amount)
        self._touch()
        return adjustment

    def remove_adjustment(self, employee_id: str, adjustment_id: uuid.UUID, kind: AdjustmentKind) -> None:
        adjustments.remove_adjustment(self.report, employee_id, adjustment_id, kind)
        self._touch()

    def cancel(self) -> None:
        """Discard every unsaved change."""
        self.report = self._committed.model_copy(deep=True)
        self.dirty = False

    async def save(self) -> IncentiveReport:
        return await self._manager.save(self)

    async def submit(self) -> IncentiveReport:
        return await self._manager.submit(self)

    async def return_hours(
        self,
        employee_id: str,
        qty: float,
        reason: str,
        return_id: str | None = None,
    ) -> IncentiveReport:
        """Return hours on the committed report, then carry the result into the working copy.

        Other unsaved edits in the working copy are kept.
        """
        if not self.persisted:
            raise NotFoundError("Save the report before returning hours")
        saved = await self._manager.return_hours(
            self.report.establishment_id, self.report.month, employee_id, qty, reason, return_id
        )
        self._committed = saved
        committed_item = get_item_or_404(saved, employee_id)
        working_item = get_item_or_404(self.report, employee_id)
        working_item.hours_payment_qty = committed_item.hours_payment_qty
        working_item.hours_return_ids = list(committed_item.hours_return_ids)
        recompute_item(working_item, self.report.rates)
        stamp(self.report, saved.updated_at)
        return saved
