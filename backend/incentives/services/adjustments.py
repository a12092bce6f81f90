"""Ad-hoc pluses and deductions on report items."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from incentives.exceptions import NotFoundError, ValidationError
from incentives.schemas.incentive import IncentiveAdjustment
from incentives.services.calculator import recompute_item
from incentives.services.guards import ensure_mutable, get_item_or_404

if TYPE_CHECKING:
    import uuid

    from incentives.models.enums import AdjustmentKind
    from incentives.schemas.incentive import IncentiveReport

logger = logging.getLogger(__name__)


def add_adjustment(
    report: IncentiveReport,
    employee_id: str,
    kind: AdjustmentKind,
    description: str,
    amount: float,
) -> IncentiveAdjustment:
    """Append a new adjustment to an item and refresh its total."""
    ensure_mutable(report)
    item = get_item_or_404(report, employee_id)
    if not description or not description.strip():
        raise ValidationError("Adjustment description must not be empty")
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Adjustment amount must be a finite number greater than zero")

    adjustment = IncentiveAdjustment(description=description.strip(), amount=amount)
    item.adjustments(kind).append(adjustment)
    recompute_item(item, report.rates)
    logger.debug("Added %s %s to %s in report %s", kind, adjustment.id, employee_id, report.id)
    return adjustment


def remove_adjustment(
    report: IncentiveReport,
    employee_id: str,
    adjustment_id: uuid.UUID,
    kind: AdjustmentKind,
) -> IncentiveAdjustment:
    """Remove an adjustment from an item's list and refresh its total."""
    ensure_mutable(report)
    item = get_item_or_404(report, employee_id)
    entries = item.adjustments(kind)
    for index, adjustment in enumerate(entries):
        if adjustment.id == adjustment_id:
            del entries[index]
            recompute_item(item, report.rates)
            logger.debug("Removed %s %s from %s in report %s", kind, adjustment_id, employee_id, report.id)
            return adjustment
    raise NotFoundError(f"Adjustment {adjustment_id} not found in {kind} list")
