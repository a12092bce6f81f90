# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Path, status

from incentives.db import SessionDep
from incentives.exceptions import AppError
from incentives.schemas.auth import AuthContext
from incentives.services.hours import HoursLedgerService, SqlHoursLedger
from incentives.services.lifecycle import ReportLifecycleManager
from incentives.services.period import Clock, get_clock
from incentives.services.repository import ReportRepository, SqlReportRepository
from incentives.services.roster import RosterService, get_roster_service

SUPERVISOR_ROLES = frozenset({"supervisor", "admin"})


async def get_auth_context(
    x_establishment_id: str = Header(),
    x_user_id: str = Header(),
    x_role: str = Header(default="manager"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(establishment_id=x_establishment_id, user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_supervisor(
    auth: AuthDep,
) -> AuthContext:
    """Require a supervisor (or admin) role for the request."""
    if auth.role not in SUPERVISOR_ROLES:
        raise AppError("Supervisor access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


SupervisorDep = Annotated[AuthContext, Depends(require_supervisor)]


async def validate_establishment_scope(
    establishment_id: str = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Managers may only reach their own store; supervisors reach every store."""
    if auth.role not in SUPERVISOR_ROLES and establishment_id != auth.establishment_id:
        raise AppError("Establishment ID mismatch", status_code=status.HTTP_403_FORBIDDEN)
    return auth


async def get_report_repository(session: SessionDep) -> ReportRepository:
    return SqlReportRepository(session)


async def get_hours_ledger(session: SessionDep) -> HoursLedgerService:
    return SqlHoursLedger(session)


async def get_lifecycle_manager(
    repository: ReportRepository = Depends(get_report_repository),
    ledger: HoursLedgerService = Depends(get_hours_ledger),
    roster: RosterService = Depends(get_roster_service),
    clock: Clock = Depends(get_clock),
) -> ReportLifecycleManager:
    """Wire a lifecycle manager for one request."""
    return ReportLifecycleManager(repository, roster, ledger, clock)


LifecycleDep = Annotated[ReportLifecycleManager, Depends(get_lifecycle_manager)]
HoursLedgerDep = Annotated[HoursLedgerService, Depends(get_hours_ledger)]
