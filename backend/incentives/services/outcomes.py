"""Named outcomes the engine emits for a presentation layer to render."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from incentives.schemas.incentive import IncentiveReport

logger = logging.getLogger(__name__)


class Outcome(enum.StrEnum):
    SAVED = "saved"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"
    RATES_CONFIGURED = "rates_configured"
    RETURNED = "returned"
    REJECTED_VALIDATION = "rejected_validation"


class OutcomeEvent(BaseModel):
    outcome: Outcome
    establishment_id: str | None
    month: str | None
    detail: str | None = None


@runtime_checkable
class OutcomeSink(Protocol):
    def emit(self, outcome: Outcome, report: IncentiveReport | None, detail: str | None = None) -> None: ...


def _event(outcome: Outcome, report: IncentiveReport | None, detail: str | None) -> OutcomeEvent:
    return OutcomeEvent(
        outcome=outcome,
        establishment_id=report.establishment_id if report is not None else None,
        month=report.month if report is not None else None,
        detail=detail,
    )


class LoggingOutcomeSink:
    """Default sink: outcomes go to the application log."""

    def emit(self, outcome: Outcome, report: IncentiveReport | None, detail: str | None = None) -> None:
        event = _event(outcome, report, detail)
        level = logging.WARNING if outcome == Outcome.REJECTED_VALIDATION else logging.INFO
        logger.log(level, "Outcome %s for %s/%s: %s", event.outcome, event.establishment_id, event.month, detail or "-")


class RecordingOutcomeSink:
    """Keeps every emitted outcome in memory."""

    def __init__(self) -> None:
        self.events: list[OutcomeEvent] = []

    def emit(self, outcome: Outcome, report: IncentiveReport | None, detail: str | None = None) -> None:
        self.events.append(_event(outcome, report, detail))

    @property
    def outcomes(self) -> list[Outcome]:
        return [event.outcome for event in self.events]
