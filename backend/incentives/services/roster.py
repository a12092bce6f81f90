# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field


class EmployeeHistoryEntry(BaseModel):
    """A contract event from the roster (hired, terminated, rehired)."""

    type: str
    date: datetime


class EmployeeInfo(BaseModel):
    """Employee metadata from the roster provider."""

    id: str
    name: str
    establishment_id: str
    active: bool = True
    category: str = "Empleado"
    weekly_hours: float = 40.0
    history: list[EmployeeHistoryEntry] = Field(default_factory=list)


@runtime_checkable
class RosterService(Protocol):
    """Read-only interface to the store roster."""

    async def list_employees(self, establishment_id: str) -> list[EmployeeInfo]:
        """List every employee (active or not) attached to a store."""
        ...

    async def get_employee(self, employee_id: str) -> EmployeeInfo | None:
        """Fetch one employee. Returns None if not found."""
        ...


class InMemoryRosterService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[str, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def list_employees(self, establishment_id: str) -> list[EmployeeInfo]:
        """List every employee attached to a store."""
        return [e for e in self._employees.values() if e.establishment_id == establishment_id]

    async def get_employee(self, employee_id: str) -> EmployeeInfo | None:
        """Fetch one employee. Returns None if not found."""
        return self._employees.get(employee_id)


_roster_service: RosterService = InMemoryRosterService()


def get_roster_service() -> RosterService:
    """FastAPI dependency for the roster provider."""
    return _roster_service


def set_roster_service(service: RosterService) -> None:
    """Override the service (for testing or production wiring)."""
    global _roster_service
    _roster_service = service
