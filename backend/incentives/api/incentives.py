# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response

from incentives.api.deps import AuthDep, LifecycleDep, SupervisorDep, validate_establishment_scope
from incentives.exceptions import NotFoundError
from incentives.models.enums import ReportStatus
from incentives.schemas.incentive import (
    MONTH_PATTERN,
    DecisionPayload,
    IncentiveReport,
    IncentiveReportResponse,
    ReportListResponse,
    ReportRates,
    ReportSummary,
    ReturnHoursPayload,
    SaveReportPayload,
)
from incentives.services.calculator import report_total
from incentives.services.export import export_filename, export_report_csv
from incentives.services.guards import is_locked

incentives_router = APIRouter(
    prefix="/establishments/{establishment_id}/incentives",
    tags=["incentives"],
    dependencies=[Depends(validate_establishment_scope)],
)

supervisor_router = APIRouter(prefix="/incentives", tags=["incentives"])

MonthPath = Annotated[str, Path(pattern=MONTH_PATTERN)]


def _build_report_response(report: IncentiveReport, *, persisted: bool = True) -> IncentiveReportResponse:
    """Map a report to its response schema."""
    return IncentiveReportResponse(
        **report.model_dump(),
        is_locked=is_locked(report.status),
        persisted=persisted,
        report_total=report_total(report),
    )


def _build_summary(report: IncentiveReport) -> ReportSummary:
    return ReportSummary(
        id=report.id,
        establishment_id=report.establishment_id,
        month=report.month,
        status=report.status,
        item_count=len(report.items),
        report_total=report_total(report),
        submitted_at=report.submitted_at,
        approved_at=report.approved_at,
        updated_at=report.updated_at,
    )


@supervisor_router.get("", response_model=ReportListResponse)
async def list_all_reports(
    lifecycle: LifecycleDep,
    auth: SupervisorDep,
    establishment_id: str | None = Query(default=None),
    status_filter: ReportStatus | None = Query(default=None, alias="status"),
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ReportListResponse:
    """List reports across stores (supervisor only)."""
    reports = await lifecycle.list_reports(establishment_id, status_filter, year)
    return ReportListResponse(items=[_build_summary(r) for r in reports], total=len(reports))


@incentives_router.get("", response_model=ReportListResponse)
async def list_reports(
    establishment_id: str,
    lifecycle: LifecycleDep,
    auth: AuthDep,
    status_filter: ReportStatus | None = Query(default=None, alias="status"),
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> ReportListResponse:
    """List a store's reports."""
    reports = await lifecycle.list_reports(establishment_id, status_filter, year)
    return ReportListResponse(items=[_build_summary(r) for r in reports], total=len(reports))


@incentives_router.get("/{month}", response_model=IncentiveReportResponse)
async def get_report(
    establishment_id: str,
    month: MonthPath,
    lifecycle: LifecycleDep,
    auth: AuthDep,
) -> IncentiveReportResponse:
    """Get a month's report, or an unsaved draft for the current month."""
    editor = await lifecycle.open_report(establishment_id, month)
    if editor is None:
        raise NotFoundError(f"No incentive report for {establishment_id}/{month}")
    return _build_report_response(editor.report, persisted=editor.persisted)


@incentives_router.put("/{month}", response_model=IncentiveReportResponse)
async def save_report(
    establishment_id: str,
    month: MonthPath,
    payload: SaveReportPayload,
    lifecycle: LifecycleDep,
    auth: AuthDep,
) -> IncentiveReportResponse:
    """Apply a batch of manager edits and save the report."""
    editor = await lifecycle.open_report(establishment_id, month)
    if editor is None:
        raise NotFoundError(f"No incentive report for {establishment_id}/{month}")

    for edit in payload.items:
        if edit.base_amount is not None:
            editor.set_base_amount(edit.employee_id, edit.base_amount)
        if edit.micros_aptacion_qty is not None:
            editor.set_micro_qty(edit.employee_id, "micros_aptacion_qty", edit.micros_aptacion_qty)
        if edit.micros_mecanizacion_qty is not None:
            editor.set_micro_qty(edit.employee_id, "micros_mecanizacion_qty", edit.micros_mecanizacion_qty)
        if edit.sick_days is not None:
            editor.set_sick_days(edit.employee_id, edit.sick_days)
        for removal in edit.remove_adjustments:
            editor.remove_adjustment(edit.employee_id, removal.id, removal.kind)
        for adjustment in edit.add_adjustments:
            editor.add_adjustment(edit.employee_id, adjustment.kind, adjustment.description, adjustment.amount)
    if payload.manager_notes is not None:
        editor.set_manager_notes(payload.manager_notes)

    saved = await editor.save()
    return _build_report_response(saved)


@incentives_router.post("/{month}/submit", response_model=IncentiveReportResponse)
async def submit_report(
    establishment_id: str,
    month: MonthPath,
    lifecycle: LifecycleDep,
    auth: AuthDep,
) -> IncentiveReportResponse:
    """Submit a closed month's report for approval."""
    editor = await lifecycle.open_report(establishment_id, month)
    if editor is None:
        raise NotFoundError(f"No incentive report for {establishment_id}/{month}")
    submitted = await editor.submit()
    return _build_report_response(submitted)


@incentives_router.post("/{month}/decision", response_model=IncentiveReportResponse)
async def decide_report(
    establishment_id: str,
    month: MonthPath,
    payload: DecisionPayload,
    lifecycle: LifecycleDep,
    auth: SupervisorDep,
) -> IncentiveReportResponse:
    """Approve, reject or send back a pending report (supervisor only)."""
    report = await lifecycle.decide(establishment_id, month, payload.status, payload.supervisor_notes)
    return _build_report_response(report)


@incentives_router.put("/{month}/rates", response_model=IncentiveReportResponse)
async def configure_rates(
    establishment_id: str,
    month: MonthPath,
    payload: ReportRates,
    lifecycle: LifecycleDep,
    auth: SupervisorDep,
) -> IncentiveReportResponse:
    """Set store-wide rates and revalue every item (supervisor only)."""
    report = await lifecycle.configure_rates(establishment_id, month, payload)
    return _build_report_response(report)


@incentives_router.post("/{month}/items/{employee_id}/return-hours", response_model=IncentiveReportResponse)
async def return_hours(
    establishment_id: str,
    month: MonthPath,
    employee_id: str,
    payload: ReturnHoursPayload,
    lifecycle: LifecycleDep,
    auth: AuthDep,
) -> IncentiveReportResponse:
    """Return paid hours to the employee's hours bank."""
    report = await lifecycle.return_hours(
        establishment_id, month, employee_id, payload.hours, payload.reason, payload.return_id
    )
    return _build_report_response(report)


@incentives_router.get("/{month}/export")
async def export_report(
    establishment_id: str,
    month: MonthPath,
    lifecycle: LifecycleDep,
    auth: AuthDep,
) -> Response:
    """Download a stored report as CSV."""
    report = await lifecycle.repository.get(establishment_id, month)
    if report is None:
        raise NotFoundError(f"No incentive report for {establishment_id}/{month}")
    return Response(
        content=export_report_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(report)}"'},
    )
