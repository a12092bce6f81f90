# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from incentives.api.deps import AuthDep, HoursLedgerDep, validate_establishment_scope
from incentives.schemas.hours import HoursBalanceResponse

hours_router = APIRouter(
    prefix="/establishments/{establishment_id}/employees/{employee_id}/hours",
    tags=["hours"],
    dependencies=[Depends(validate_establishment_scope)],
)


@hours_router.get("", response_model=HoursBalanceResponse)
async def get_hours_balance(
    employee_id: str,
    ledger: HoursLedgerDep,
    auth: AuthDep,
    limit: int = Query(default=50, ge=1, le=100),
) -> HoursBalanceResponse:
    """Get an employee's hours-bank balance and recent ledger entries."""
    entries = await ledger.history(employee_id, limit)
    return HoursBalanceResponse(
        employee_id=employee_id,
        balance_hours=await ledger.get_balance(employee_id),
        updated_at=entries[0].created_at if entries else None,
        entries=entries,
    )
