"""Report persistence: the only way the engine reads or writes stored reports."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import select
from sqlmodel import col

from incentives.models.enums import AuditAction, AuditEntityType, ReportStatus
from incentives.models.report import IncentiveReportRecord
from incentives.schemas.incentive import IncentiveItem, IncentiveReport
from incentives.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@runtime_checkable
class ReportRepository(Protocol):
    """Interface for report storage. At most one report per (establishment, month)."""

    async def get(self, establishment_id: str, month: str) -> IncentiveReport | None:
        """Fetch the committed report for a period. Returns None if absent."""
        ...

    async def put(self, report: IncentiveReport) -> IncentiveReport:
        """Store ``report`` as the committed aggregate for its period and return it."""
        ...

    async def list_reports(
        self,
        establishment_id: str | None = None,
        status: ReportStatus | None = None,
        year: int | None = None,
    ) -> list[IncentiveReport]:
        """List committed reports, newest month first."""
        ...


def _matches(
    report: IncentiveReport,
    establishment_id: str | None,
    status: ReportStatus | None,
    year: int | None,
) -> bool:
    if establishment_id is not None and report.establishment_id != establishment_id:
        return False
    if status is not None and report.status != status:
        return False
    return year is None or report.month.startswith(f"{year:04d}-")


class InMemoryReportRepository:
    """Dict-backed repository. Stores and returns deep copies only."""

    def __init__(self) -> None:
        self._reports: dict[tuple[str, str], IncentiveReport] = {}

    async def get(self, establishment_id: str, month: str) -> IncentiveReport | None:
        report = self._reports.get((establishment_id, month))
        return report.model_copy(deep=True) if report is not None else None

    async def put(self, report: IncentiveReport) -> IncentiveReport:
        key = (report.establishment_id, report.month)
        existing = self._reports.get(key)
        stored = report.model_copy(deep=True)
        if existing is not None:
            stored.id = existing.id
        self._reports[key] = stored
        return stored.model_copy(deep=True)

    async def list_reports(
        self,
        establishment_id: str | None = None,
        status: ReportStatus | None = None,
        year: int | None = None,
    ) -> list[IncentiveReport]:
        reports = [r for r in self._reports.values() if _matches(r, establishment_id, status, year)]
        reports.sort(key=lambda r: (r.month, r.establishment_id), reverse=True)
        return [r.model_copy(deep=True) for r in reports]


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------


def _aware(value: datetime) -> datetime:
    """Backends without timezone support hand back naive UTC values."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _record_to_report(record: IncentiveReportRecord) -> IncentiveReport:
    return IncentiveReport(
        id=record.id,
        establishment_id=record.establishment_id,
        month=record.month,
        status=ReportStatus(record.status),
        items=[IncentiveItem.model_validate(item) for item in record.items_json],
        value_per_captacion=record.value_per_captacion,
        value_per_mecanizacion=record.value_per_mecanizacion,
        value_per_extra_hour=record.value_per_extra_hour,
        value_responsibility_bonus=record.value_responsibility_bonus,
        supervisor_notes=record.supervisor_notes,
        manager_notes=record.manager_notes,
        submitted_at=_aware(record.submitted_at) if record.submitted_at else None,
        approved_at=_aware(record.approved_at) if record.approved_at else None,
        updated_at=_aware(record.updated_at),
    )


def _apply_report_to_record(report: IncentiveReport, record: IncentiveReportRecord) -> None:
    record.status = report.status.value
    record.value_per_captacion = report.value_per_captacion or 0.0
    record.value_per_mecanizacion = report.value_per_mecanizacion or 0.0
    record.value_per_extra_hour = report.value_per_extra_hour or 0.0
    record.value_responsibility_bonus = report.value_responsibility_bonus
    record.supervisor_notes = report.supervisor_notes
    record.manager_notes = report.manager_notes
    record.submitted_at = report.submitted_at
    record.approved_at = report.approved_at
    record.items_json = [item.model_dump(mode="json") for item in report.items]
    record.updated_at = report.updated_at


class SqlReportRepository:
    """Repository backed by the ``incentive_report`` table.

    Each ``put`` is its own transaction and writes an audit entry with the
    before/after state of the record.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_record(
        self,
        establishment_id: str,
        month: str,
        *,
        for_update: bool = False,
    ) -> IncentiveReportRecord | None:
        query = select(IncentiveReportRecord).where(
            col(IncentiveReportRecord.establishment_id) == establishment_id,
            col(IncentiveReportRecord.month) == month,
        )
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get(self, establishment_id: str, month: str) -> IncentiveReport | None:
        record = await self._get_record(establishment_id, month)
        return _record_to_report(record) if record is not None else None

    async def put(self, report: IncentiveReport) -> IncentiveReport:
        record = await self._get_record(report.establishment_id, report.month, for_update=True)

        if record is None:
            record = IncentiveReportRecord(
                id=report.id,
                establishment_id=report.establishment_id,
                month=report.month,
                updated_at=report.updated_at,
            )
            _apply_report_to_record(report, record)
            self._session.add(record)
            before_dict = None
            action = AuditAction.CREATE
        else:
            before_dict = model_to_audit_dict(record)
            _apply_report_to_record(report, record)
            record.version += 1
            action = AuditAction.UPDATE

        try:
            await self._session.flush()
            await write_audit_log(
                self._session,
                establishment_id=report.establishment_id,
                entity_type=AuditEntityType.INCENTIVE_REPORT,
                entity_id=record.id,
                action=action,
                before_json=before_dict,
                after_json=model_to_audit_dict(record),
            )
            await self._session.commit()
        except Exception:
            # Leave the session usable for a retried save.
            await self._session.rollback()
            raise
        await self._session.refresh(record)
        logger.info(
            "Stored report %s/%s (status=%s, version=%d)",
            record.establishment_id,
            record.month,
            record.status,
            record.version,
        )
        return _record_to_report(record)

    async def list_reports(
        self,
        establishment_id: str | None = None,
        status: ReportStatus | None = None,
        year: int | None = None,
    ) -> list[IncentiveReport]:
        filters = []
        if establishment_id is not None:
            filters.append(col(IncentiveReportRecord.establishment_id) == establishment_id)
        if status is not None:
            filters.append(col(IncentiveReportRecord.status) == status.value)
        if year is not None:
            filters.append(col(IncentiveReportRecord.month).startswith(f"{year:04d}-"))

        result = await self._session.execute(
            select(IncentiveReportRecord)
            .where(*filters)
            .order_by(col(IncentiveReportRecord.month).desc(), col(IncentiveReportRecord.establishment_id).desc())
        )
        return [_record_to_report(record) for record in result.scalars().all()]
